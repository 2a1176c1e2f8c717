from miniquery.builder import QueryBuilder
from miniquery.exceptions import ConfigurationError
from miniquery.orm_types import BoundParam, Column


class Model(QueryBuilder):
    """Active-record style base: subclasses describe a table, instances query it.

    Columns are the ``Column`` attributes of the class, in declaration order,
    parents first. ``Meta.table_name`` names the table; ``Meta.primary`` and
    ``Meta.columns`` override the primary key and the column list.
    """

    _declared_columns = {}
    _meta = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        columns = dict(cls._declared_columns)
        for name, col in cls.__dict__.items():
            if isinstance(col, Column):
                if hasattr(QueryBuilder, name):
                    raise ConfigurationError(
                        f"Column '{name}' of {cls.__name__} shadows a query attribute, list it in Meta.columns instead"
                    )
                columns[name] = col
        cls._declared_columns = columns

        meta_cls = getattr(cls, "Meta", None)
        meta_attrs = {}
        if meta_cls:
            for attr in dir(meta_cls):
                if not attr.startswith('_'):
                    meta_attrs[attr] = getattr(meta_cls, attr)
        cls._meta = meta_attrs

    def __init__(self, engine):
        cls = self.__class__
        super().__init__(
            engine,
            table=cls._meta.get("table_name"),
            primary=cls._resolve_primary(),
            columns=list(cls._meta.get("columns") or cls._declared_columns.keys()),
        )

    @classmethod
    def _resolve_primary(cls):
        if cls._meta.get("primary"):
            return cls._meta["primary"]
        pk_cols = [name for name, col in cls._declared_columns.items() if col.pk]
        return pk_cols[0] if pk_cols else "id"

    def _bind_value(self, name, value):
        col = self._declared_columns.get(name)
        if col is None or value is None:
            return super()._bind_value(name, value)
        # declared column type decides the kind
        return BoundParam("", value, col.kind)

    @classmethod
    def query(cls, engine):
        return cls(engine)
