"""In-memory stand-ins for the Supabase client and Redis used by the tests."""
import copy
import itertools
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from postgrest.exceptions import APIError

PRIMARY_KEYS = {
    'products': 'product_id',
    'brands': 'brand_id',
    'product_categories': 'id',
    'product_sets': 'product_set_id',
    'product_price_histories': 'id',
    'home_category_orders': 'id',
}
UNIQUE_COLUMNS = {
    'brands': 'name',
}
TIMESTAMP_COLUMNS = {
    'product_price_histories': 'recorded_at',
}


def api_error(message='request failed', code='XX000'):
    return APIError({'message': message, 'code': code, 'hint': None, 'details': None})


def _same(left, right):
    if left is None or right is None:
        return left is None and right is None
    return str(left) == str(right)


def _like(value, pattern):
    needle = pattern.strip('%*').lower()
    return value is not None and needle in str(value).lower()


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.operation = 'select'
        self.payload = None
        self.filters = []
        self.orders = []
        self.row_range = None
        self.row_limit = None
        self.count_method = None
        self.head = False
        self._negate = False

    # Builders

    def select(self, *columns, count=None, head=None):
        self.operation = 'select'
        self.count_method = count
        self.head = bool(head)
        return self

    def insert(self, data):
        self.operation = 'insert'
        self.payload = data
        return self

    def update(self, data):
        self.operation = 'update'
        self.payload = data
        return self

    def delete(self):
        self.operation = 'delete'
        return self

    # Filters

    def _add(self, predicate):
        if self._negate:
            self._negate = False
            self.filters.append(lambda row: not predicate(row))
        else:
            self.filters.append(predicate)
        return self

    @property
    def not_(self):
        self._negate = True
        return self

    def eq(self, column, value):
        return self._add(lambda row: _same(row.get(column), value))

    def neq(self, column, value):
        return self._add(lambda row: not _same(row.get(column), value))

    def is_(self, column, value):
        assert value == 'null'
        return self._add(lambda row: row.get(column) is None)

    def in_(self, column, values):
        wanted = {str(v) for v in values}
        return self._add(lambda row: row.get(column) is not None and str(row.get(column)) in wanted)

    def ilike(self, column, pattern):
        return self._add(lambda row: _like(row.get(column), pattern))

    def or_(self, expression):
        clauses = []
        for clause in expression.split(','):
            column, op, value = clause.split('.', 2)
            clauses.append((column, op, value))

        def matches(row):
            for column, op, value in clauses:
                if op == 'eq' and _same(row.get(column), value):
                    return True
                if op == 'ilike' and _like(row.get(column), value):
                    return True
            return False
        return self._add(matches)

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.row_range = (start, end)
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    # Execution

    def _matching(self, rows):
        return [row for row in rows if all(f(row) for f in self.filters)]

    def execute(self):
        self.client.calls.append((self.table, self.operation))
        failure = self.client.failures.get((self.table, self.operation))
        if failure is not None:
            raise failure

        rows = self.client.tables.setdefault(self.table, [])
        if self.operation == 'insert':
            return self._insert(rows)
        if self.operation == 'update':
            updated = self._matching(rows)
            for row in updated:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(updated), count=None)
        if self.operation == 'delete':
            removed = self._matching(rows)
            self.client.tables[self.table] = [row for row in rows if row not in removed]
            return SimpleNamespace(data=copy.deepcopy(removed), count=None)

        selected = self._matching(rows)
        for column, desc in reversed(self.orders):
            selected.sort(key=lambda r: (r.get(column) is None, r.get(column) if r.get(column) is not None else ''),
                          reverse=desc)
        total = len(selected)
        if self.row_range is not None:
            start, end = self.row_range
            selected = selected[start:end + 1]
        if self.row_limit is not None:
            selected = selected[:self.row_limit]
        return SimpleNamespace(
            data=[] if self.head else copy.deepcopy(selected),
            count=total if self.count_method else None,
        )

    def _insert(self, rows):
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        key = PRIMARY_KEYS.get(self.table, 'id')
        unique = UNIQUE_COLUMNS.get(self.table)
        timestamp_column = TIMESTAMP_COLUMNS.get(self.table, 'created_at')

        inserted = []
        for data in payload:
            row = copy.deepcopy(data)
            if unique and any(_same(existing.get(unique), row.get(unique)) for existing in rows + inserted):
                raise api_error('duplicate key value violates unique constraint', '23505')
            row.setdefault(key, str(uuid.uuid4()))
            row.setdefault(timestamp_column, self.client.next_timestamp())
            inserted.append(row)
        rows.extend(inserted)
        return SimpleNamespace(data=copy.deepcopy(inserted), count=None)


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, file, file_options=None):
        if self.storage.fail_upload:
            raise RuntimeError('upload failed')
        self.storage.objects[f"{self.name}/{path}"] = file
        return {'Key': f"{self.name}/{path}"}

    def remove(self, paths):
        for path in paths:
            self.storage.objects.pop(f"{self.name}/{path}", None)
        return []


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.fail_upload = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeSupabaseClient:
    """Rows per table plus failure injection keyed by (table, operation)."""

    def __init__(self, tables=None):
        self.tables = copy.deepcopy(tables or {})
        self.failures = {}
        self.calls = []
        self.storage = FakeStorage()
        self._clock = itertools.count()
        self._epoch = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def next_timestamp(self):
        return (self._epoch + timedelta(seconds=next(self._clock))).isoformat()

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])


class FakeRedis:
    def __init__(self):
        self.lists = {}

    def lpush(self, key, *values):
        bucket = self.lists.setdefault(key, [])
        for value in values:
            bucket.insert(0, value)
        return len(bucket)

    def ltrim(self, key, start, end):
        bucket = self.lists.get(key, [])
        self.lists[key] = bucket[start:end + 1 if end != -1 else None]
        return True

    def lrange(self, key, start, end):
        bucket = self.lists.get(key, [])
        return bucket[start:end + 1 if end != -1 else None]

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += 1 if self.lists.pop(key, None) is not None else 0
        return removed
