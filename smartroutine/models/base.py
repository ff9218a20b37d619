from typing import Any, ClassVar, Iterable, Optional, cast

from psycopg.types.json import Json

from smartroutine.database.db_manager import DBManager


def _adapt(value: Any) -> Any:
    # dicts go to JSONB columns
    return Json(value) if isinstance(value, dict) else value


class BaseModel:
    '''Thin table gateway: every classmethod runs in its own transaction.'''

    table: ClassVar[str]
    pk: ClassVar[str] = 'id'

    @classmethod
    def _select_sql(
        cls, columns: str = '*', where: str = '', order_by: str = '', limited: bool = False
    ) -> str:
        sql = f'SELECT {columns} FROM {cls.table}'
        if where:
            sql += f' WHERE {where}'
        if order_by:
            sql += f' ORDER BY {order_by}'
        if limited:
            sql += ' LIMIT %s'
        return sql

    @classmethod
    def get(cls, id_value: Any) -> Optional[dict[str, Any]]:
        with DBManager() as db:
            row = db.fetchone(cls._select_sql(where=f'{cls.pk} = %s'), (id_value,))
        return cast(Optional[dict[str, Any]], row)

    @classmethod
    def get_many(
        cls,
        where: str = '',
        params: Iterable[Any] = (),
        order_by: str = '',
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        parameters = tuple(params) if limit is None else (*params, limit)
        sql = cls._select_sql('*', where, order_by, limited=limit is not None)
        with DBManager() as db:
            rows = db.fetchall(sql, parameters)
        return cast(list[dict[str, Any]], rows)

    @classmethod
    def exists(cls, where: str, params: Iterable[Any] = ()) -> bool:
        with DBManager() as db:
            row = db.fetchone(cls._select_sql('1', where, limited=True), (*params, 1))
        return row is not None

    @classmethod
    def create(cls, values: dict[str, Any]) -> dict[str, Any]:
        '''INSERT one row and return it as stored, server defaults included.'''
        cols = list(values)
        sql = (
            f'INSERT INTO {cls.table} ({", ".join(cols)}) '
            f'VALUES ({", ".join(["%s"] * len(cols))}) RETURNING *'
        )
        with DBManager() as db:
            rows = db.fetchall(sql, tuple(_adapt(values[c]) for c in cols))
        return cast(dict[str, Any], rows[0]) if rows else {}

    @classmethod
    def update_where(
        cls, values: dict[str, Any], where: str, params: Iterable[Any] = ()
    ) -> list[dict[str, Any]]:
        '''UPDATE rows matching ``where`` and return them as updated.

        An empty result means nothing matched, which callers use as a
        compare-and-set on the current state.
        '''
        sets = ', '.join(f'{k} = %s' for k in values)
        sql = f'UPDATE {cls.table} SET {sets} WHERE {where} RETURNING *'
        with DBManager() as db:
            rows = db.fetchall(sql, (*(_adapt(v) for v in values.values()), *params))
        return cast(list[dict[str, Any]], rows)
