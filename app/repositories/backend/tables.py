"""Table and column names of the backend schema."""

from __future__ import annotations

from typing import Final

WASTE_TYPE_TABLE: Final = "tiporesiduo"
POINT_TABLE: Final = "puntoreciclaje"
POINT_WASTE_TABLE: Final = "punto_residuo"
USER_TABLE: Final = "usuario"
QUERY_TABLE: Final = "consulta"
QUERY_RESULT_TABLE: Final = "consulta_puntoreciclaje"

POINT_COLUMNS: Final = "id_punto, nombre, latitud, longitud, direccion, activa, horario, telefono"
