import uuid
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Date, JSON, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship, declared_attr
from acme_hr.db import Base


def new_id() -> str:
    return uuid.uuid4().hex


def _money(value):
    return Decimal(value) if value is not None else None


def payroll_totals(salario_bruto, devengos, deducciones):
    """
    Returns (total_devengos, total_deducciones, salario_neto) for the given
    gross salary and line item values.
    """
    total_devengos = sum((Decimal(v) for v in devengos), Decimal("0"))
    total_deducciones = sum((Decimal(v) for v in deducciones), Decimal("0"))
    salario_neto = Decimal(salario_bruto) + total_devengos - total_deducciones
    return total_devengos, total_deducciones, salario_neto


class Area(Base):
    __tablename__ = "areas"
    id = Column(String(32), primary_key=True, default=new_id)
    nombre = Column(String(150), unique=True, nullable=False)

    def to_dict(self):
        return {"id": self.id, "nombre": self.nombre}


class Cargo(Base):
    __tablename__ = "cargos"
    id = Column(String(32), primary_key=True, default=new_id)
    nombre = Column(String(150), unique=True, nullable=False)

    def to_dict(self):
        return {"id": self.id, "nombre": self.nombre}


class Empleado(Base):
    __tablename__ = "empleados"
    id = Column(String(32), primary_key=True, default=new_id)
    documento = Column(String(50), unique=True, nullable=False)
    nombre = Column(String(150), nullable=False)
    apellido = Column(String(150), nullable=False)
    email = Column(String(200), nullable=False)
    edad = Column(Integer, nullable=True)
    ciudad = Column(String(150), nullable=True)
    barrio = Column(String(150), nullable=True)
    roles = Column(JSON, nullable=False, default=list)
    salario_base = Column(Numeric(12, 2), nullable=False)
    area_id = Column(String(32), ForeignKey("areas.id"), nullable=False)
    cargo_id = Column(String(32), ForeignKey("cargos.id"), nullable=False)
    fecha_contratacion = Column(Date, nullable=True)
    area = relationship("Area")
    cargo = relationship("Cargo")

    def to_dict(self, include_refs: bool = False):
        data = {
            "id": self.id,
            "documento": self.documento,
            "nombre": self.nombre,
            "apellido": self.apellido,
            "email": self.email,
            "edad": self.edad,
            "direccion": {"ciudad": self.ciudad, "barrio": self.barrio},
            "roles": list(self.roles or []),
            "salarioBase": _money(self.salario_base),
            "areaId": self.area_id,
            "cargoId": self.cargo_id,
            "fechaContratacion": self.fecha_contratacion,
        }
        if include_refs:
            data["area"] = self.area.to_dict() if self.area else None
            data["cargo"] = self.cargo.to_dict() if self.cargo else None
        return data


class LineItemMixin:
    id = Column(String(32), primary_key=True, default=new_id)
    posicion = Column(Integer, nullable=False, default=0)
    concepto = Column(String(200), nullable=False)
    valor = Column(Numeric(12, 2), nullable=False)

    @declared_attr
    def nomina_id(cls):
        return Column(String(32), ForeignKey("nominas.id", ondelete="CASCADE"), nullable=False)

    def content(self):
        """What the item says, without its id."""
        return self.concepto, _money(self.valor)

    def to_dict(self):
        return {"id": self.id, "concepto": self.concepto, "valor": _money(self.valor)}


class Devengo(LineItemMixin, Base):
    __tablename__ = "nomina_devengos"


class Deduccion(LineItemMixin, Base):
    __tablename__ = "nomina_deducciones"


class Nomina(Base):
    __tablename__ = "nominas"
    __table_args__ = (UniqueConstraint("empleado_id", "periodo", name="uq_nomina_empleado_periodo"),)
    id = Column(String(32), primary_key=True, default=new_id)
    empleado_id = Column(String(32), ForeignKey("empleados.id"), nullable=False)
    periodo = Column(String(50), nullable=False)
    fecha_emision = Column(Date, nullable=True)
    salario_bruto = Column(Numeric(12, 2), nullable=False)
    total_devengos = Column(Numeric(12, 2), nullable=False, default=0)
    total_deducciones = Column(Numeric(12, 2), nullable=False, default=0)
    salario_neto = Column(Numeric(12, 2), nullable=False, default=0)
    devengos = relationship(
        "Devengo",
        order_by="Devengo.posicion",
        collection_class=ordering_list("posicion"),
        cascade="all, delete-orphan",
    )
    deducciones = relationship(
        "Deduccion",
        order_by="Deduccion.posicion",
        collection_class=ordering_list("posicion"),
        cascade="all, delete-orphan",
    )
    empleado = relationship("Empleado")

    def recompute_totals(self):
        """Derive the totals and the net salary from the line items."""
        self.total_devengos, self.total_deducciones, self.salario_neto = payroll_totals(
            self.salario_bruto,
            [d.valor for d in self.devengos],
            [d.valor for d in self.deducciones],
        )

    def to_dict(self, include_empleado: bool = False):
        data = {
            "id": self.id,
            "empleadoId": self.empleado_id,
            "periodo": self.periodo,
            "fechaEmision": self.fecha_emision,
            "salarioBruto": _money(self.salario_bruto),
            "devengos": [d.to_dict() for d in self.devengos],
            "deducciones": [d.to_dict() for d in self.deducciones],
            "totalDevengos": _money(self.total_devengos),
            "totalDeducciones": _money(self.total_deducciones),
            "salarioNeto": _money(self.salario_neto),
        }
        if include_empleado:
            data["empleado"] = self.empleado.to_dict() if self.empleado else None
        return data
