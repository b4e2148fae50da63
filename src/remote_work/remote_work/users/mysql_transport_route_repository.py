from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import TransportRoute
from .repository import TransportRouteRepository


def _to_route(r: dict) -> TransportRoute:
    return TransportRoute(
        route_id=int(r["route_id"]),
        user_id=int(r["user_id"]),
        departure_station=r["departure_station"],
        via_station=r.get("via_station"),
        arrival_station=r["arrival_station"],
        transport_type=r["transport_type"],
        fare=int(r.get("fare") or 0),
    )


class MySQLTransportRouteRepository(TransportRouteRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user(self, user_id: int) -> Sequence[TransportRoute]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT route_id, user_id, departure_station, via_station,
                       arrival_station, transport_type, fare
                FROM transport_routes
                WHERE user_id=%s
                ORDER BY route_id
                """,
                (int(user_id),),
            )
            return [_to_route(r) for r in fetchall(cur)]

    def get_by_id(self, route_id: int) -> Optional[TransportRoute]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT route_id, user_id, departure_station, via_station,
                       arrival_station, transport_type, fare
                FROM transport_routes
                WHERE route_id=%s
                """,
                (int(route_id),),
            )
            r = fetchone(cur)
            return _to_route(r) if r else None

    def create(
        self,
        *,
        user_id: int,
        departure_station: str,
        via_station: Optional[str],
        arrival_station: str,
        transport_type: str,
        fare: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO transport_routes(
                    user_id, departure_station, via_station, arrival_station, transport_type, fare
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), departure_station, via_station, arrival_station, transport_type, int(fare)),
            )
            return int(cur.lastrowid)

    def delete(self, route_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM transport_routes WHERE route_id=%s", (int(route_id),))
            return cur.rowcount > 0
