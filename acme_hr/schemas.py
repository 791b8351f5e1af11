from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, Field, constr, field_validator

NonEmptyStr = constr(strip_whitespace=True, min_length=1)


class AreaIn(BaseModel):
    nombre: NonEmptyStr


class CargoIn(BaseModel):
    nombre: NonEmptyStr


class EmpleadoIn(BaseModel):
    documento: NonEmptyStr
    nombre: NonEmptyStr
    apellido: NonEmptyStr
    email: NonEmptyStr
    edad: Optional[int] = None
    ciudad: Optional[str] = None
    barrio: Optional[str] = None
    roles: Union[List[str], str, None] = []
    salarioBase: Decimal = Field(gt=0)
    areaId: NonEmptyStr
    cargoId: NonEmptyStr
    fechaContratacion: date

    @field_validator("roles", mode="before")
    @classmethod
    def split_roles(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [r.strip() for r in value.split(",")] if value else []
        return value


class LineItemIn(BaseModel):
    id: Optional[str] = None
    concepto: NonEmptyStr
    valor: Decimal


class NominaIn(BaseModel):
    empleadoId: NonEmptyStr
    periodo: NonEmptyStr
    fechaEmision: date
    salarioBruto: Decimal
    devengos: List[LineItemIn] = []
    deducciones: List[LineItemIn] = []
