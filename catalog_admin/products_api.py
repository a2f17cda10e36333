"""
Products API
Paged listing, detail, registration with image upload, edits and brands
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_cors import CORS

from .request_helpers import load_json, require_confirmation
from .schemas import BrandSchema, ProductCreateSchema, ProductQuerySchema, ProductUpdateSchema
from .services.brand_service import BrandService
from .services.product_service import ImageUpload, ProductQuery, ProductService
from .services.supabase_auth import admin_required
from .services.supabase_database import get_supabase_db

logger = logging.getLogger(__name__)

products_bp = Blueprint('products', __name__)
CORS(products_bp)


def _service():
    return ProductService(
        get_supabase_db(),
        static_base_url=current_app.config['STATIC_ASSET_BASE_URL'],
        default_image_extension=current_app.config['PRODUCT_IMAGE_DEFAULT_EXTENSION'],
    )


@products_bp.route('/products', methods=['GET'])
@admin_required
def get_products():
    """Get one page of products with filtering and sorting"""
    query = ProductQuery(**ProductQuerySchema().load(request.args))
    page = _service().list_products(query)
    return jsonify(page.to_dict())


@products_bp.route('/products/search', methods=['GET'])
@admin_required
def search_products():
    products = _service().search_products(request.args.get('q', ''))
    return jsonify({'success': True, 'products': products})


@products_bp.route('/products/<product_id>', methods=['GET'])
@admin_required
def get_product(product_id):
    product = _service().get_product(product_id)
    return jsonify({'success': True, 'product': product})


@products_bp.route('/products', methods=['POST'])
@admin_required
def create_product():
    """Register a product from JSON, or from a multipart form with an ``image`` file"""
    image = None
    if request.files or request.form:
        data = ProductCreateSchema().load(request.form.to_dict())
        upload = request.files.get('image')
        if upload and upload.filename:
            image = ImageUpload(
                filename=upload.filename,
                content=upload.read(),
                content_type=upload.mimetype or 'application/octet-stream',
            )
    else:
        data = load_json(ProductCreateSchema())

    product = _service().create_product(
        name=data['name'],
        description=data['description'],
        brand_id=data['brand_id'],
        category_id=data.get('category_id'),
        image=image,
    )
    return jsonify({'success': True, 'product': product}), 201


@products_bp.route('/products/<product_id>', methods=['PUT'])
@admin_required
def update_product(product_id):
    data = load_json(ProductUpdateSchema())
    product = _service().update_product(product_id, data)
    return jsonify({'success': True, 'product': product})


@products_bp.route('/products/<product_id>', methods=['DELETE'])
@admin_required
def delete_product(product_id):
    require_confirmation()
    _service().delete_product(product_id)
    return jsonify({'success': True, 'message': f'Product {product_id} deleted'})


@products_bp.route('/brands', methods=['GET'])
@admin_required
def get_brands():
    brands = BrandService(get_supabase_db()).list_brands()
    return jsonify({'success': True, 'brands': brands})


@products_bp.route('/brands/search', methods=['GET'])
@admin_required
def search_brands():
    brands = BrandService(get_supabase_db()).search_brands(request.args.get('q', ''))
    return jsonify({'success': True, 'brands': brands})


@products_bp.route('/brands', methods=['POST'])
@admin_required
def create_brand():
    data = load_json(BrandSchema())
    brand = BrandService(get_supabase_db()).create_brand(data['name'])
    return jsonify({'success': True, 'brand': brand}), 201
