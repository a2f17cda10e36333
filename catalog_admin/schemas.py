"""Schema definitions for request validation."""
from flask import current_app
from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from .services.cache_proxy import CACHE_TYPES
from .services.product_service import CATEGORY_FILTERS, SORT_DIRECTIONS, SORT_FIELDS


class QueryArgsSchema(Schema):
    """Query strings carry unrelated flags such as confirm."""
    class Meta:
        unknown = EXCLUDE


class CategoryCreateSchema(Schema):
    """Schema for category creation."""
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    parent_id = fields.Raw(allow_none=True, load_default=None)


class CategoryUpdateSchema(Schema):
    """Schema for category rename / re-parent."""
    name = fields.String(validate=validate.Length(min=1, max=255))
    parent_id = fields.Raw(allow_none=True)


class BulkAssignCategorySchema(Schema):
    """Schema for batch category update."""
    product_ids = fields.List(fields.String(), required=True, validate=validate.Length(min=1))
    category_id = fields.Raw(required=True)


class ProductQuerySchema(QueryArgsSchema):
    """Schema for product listing arguments."""
    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    page_size = fields.Integer(data_key='per_page', load_default=None)
    sort_field = fields.String(data_key='sort', load_default='created_at', validate=validate.OneOf(SORT_FIELDS))
    sort_direction = fields.String(data_key='direction', load_default='desc',
                                   validate=validate.OneOf(SORT_DIRECTIONS))
    brand_id = fields.String(load_default=None)
    category_filter = fields.String(load_default='all', validate=validate.OneOf(CATEGORY_FILTERS))
    category_id = fields.String(load_default=None)
    search = fields.String(load_default='')

    @post_load
    def apply_page_size(self, data, **kwargs):
        """Page size defaults to and is limited by the app configuration."""
        choices = current_app.config['PAGE_SIZE_CHOICES']
        if data['page_size'] is None:
            data['page_size'] = current_app.config['DEFAULT_PAGE_SIZE']
        elif data['page_size'] not in choices:
            raise ValidationError(f"Must be one of: {', '.join(str(c) for c in choices)}.", 'per_page')
        return data


class ProductCreateSchema(Schema):
    """Schema for product registration."""
    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=True, validate=validate.Length(min=1))
    description = fields.String(required=True, validate=validate.Length(min=1))
    brand_id = fields.String(required=True, validate=validate.Length(min=1))
    category_id = fields.Raw(allow_none=True, load_default=None)


class ProductUpdateSchema(Schema):
    name = fields.String(validate=validate.Length(min=1))
    description = fields.String()
    brand_id = fields.String(allow_none=True)
    category_id = fields.Raw(allow_none=True)


class BrandSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))


class ProductSetRegistrationSchema(Schema):
    """Schema for registering product sets from comma-separated links."""
    product_id = fields.String(required=True, validate=validate.Length(min=1))
    links = fields.String(required=True)
    platform_id = fields.String(allow_none=True, load_default=None)


class ProductSetUpdateSchema(Schema):
    product_name = fields.String(allow_none=True)
    normalized_product_name = fields.String(allow_none=True)
    link_url = fields.String(validate=validate.Length(min=1))
    label = fields.String(allow_none=True)
    thumbnail = fields.String(allow_none=True)
    platform_id = fields.String()
    md_pick = fields.Boolean()


class MdPickSchema(Schema):
    """Omitting md_pick flips the current value."""
    md_pick = fields.Boolean(allow_none=True, load_default=None)


class PriceRecordSchema(Schema):
    """Schema for one price observation."""
    original_price = fields.Integer(required=True, validate=validate.Range(min=0))
    discount_price = fields.Integer(allow_none=True, load_default=None, validate=validate.Range(min=0))
    shipping_fee = fields.Integer(load_default=0, validate=validate.Range(min=0))
    metadata = fields.Dict(allow_none=True, load_default=None)


class ProductSetWithPriceSchema(Schema):
    """Schema for a single product set registered with its first price."""
    product_id = fields.String(required=True, validate=validate.Length(min=1))
    link_url = fields.String(required=True, validate=validate.Length(min=1))
    product_name = fields.String(allow_none=True, load_default=None)
    platform_id = fields.String(allow_none=True, load_default=None)
    original_price = fields.Integer(required=True, validate=validate.Range(min=0))
    discount_price = fields.Integer(allow_none=True, load_default=None, validate=validate.Range(min=0))
    shipping_fee = fields.Integer(load_default=0, validate=validate.Range(min=0))


class HomeCategorySaveSchema(Schema):
    """Ordered selection of top-level categories to show."""
    category_ids = fields.List(fields.Raw(), required=True)


class TriggerSchema(Schema):
    product_id = fields.String(data_key='productId', required=True, validate=validate.Length(min=1))


class CacheRequestSchema(QueryArgsSchema):
    type = fields.String(required=True, validate=validate.OneOf(CACHE_TYPES))
    category_id = fields.String(data_key='categoryId', load_default=None)
    path = fields.String(load_default=None)
