# acme_hr/repositories.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session, joinedload, selectinload

from acme_hr.models import Area, Cargo, Empleado, Nomina

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _differs(current, value) -> bool:
    # Nomina line items compare by content, not identity
    if isinstance(value, list) and all(hasattr(v, "content") for v in value) \
            and all(hasattr(c, "content") for c in current or []):
        return [c.content() for c in current or []] != [v.content() for v in value]
    return current != value


@dataclass
class UpsertResult:
    matched: int
    modified: int
    upserted_id: Optional[str] = None


class Repository(Generic[T]):
    """
    Collection-style access to one table. Every write commits on its own;
    there is no unit of work spanning several records.
    """

    def __init__(self, session: Session, model: Type[T]):
        self.session = session
        self.model = model

    def _query(self):
        return self.session.query(self.model)

    def find(self, **filters) -> List[T]:
        return self._query().filter_by(**filters).all()

    def find_one(self, **filters) -> Optional[T]:
        return self._query().filter_by(**filters).first()

    def get(self, id: str) -> Optional[T]:
        return self._query().filter_by(id=id).first()

    def upsert_by_key(self, key: Dict[str, Any], values: Dict[str, Any]) -> UpsertResult:
        """
        Insert-or-update keyed on a business key. When a record matches `key`
        only the fields in `values` are touched; otherwise a new record is
        created from `key` and `values` together.
        """
        obj = self.find_one(**key)
        if obj is None:
            obj = self.model(**{**key, **values})
            self.session.add(obj)
            self.session.commit()
            logger.debug(f"Inserted {self.model.__tablename__} {key} (id={obj.id})")
            return UpsertResult(matched=0, modified=0, upserted_id=obj.id)

        modified = False
        for field, value in values.items():
            if _differs(getattr(obj, field), value):
                setattr(obj, field, value)
                modified = True
        if modified:
            self.session.commit()
        return UpsertResult(matched=1, modified=int(modified))

    def insert(self, values: Dict[str, Any]) -> T:
        obj = self.model(**values)
        self.session.add(obj)
        self.session.commit()
        return obj

    def save(self, obj: T) -> T:
        self.session.add(obj)
        self.session.commit()
        return obj

    def update(self, id: str, values: Dict[str, Any]) -> Optional[T]:
        obj = self.get(id)
        if obj is None:
            return None
        for field, value in values.items():
            setattr(obj, field, value)
        self.session.commit()
        return obj

    def delete(self, **filters) -> int:
        objs = self.find(**filters)
        for obj in objs:
            self.session.delete(obj)
        if objs:
            self.session.commit()
        return len(objs)


class CatalogRepository(Repository[T]):
    """Tables keyed by a unique `nombre` (areas, cargos)."""

    def name_map(self) -> Dict[str, str]:
        return {obj.nombre: obj.id for obj in self.find()}


class AreaRepository(CatalogRepository[Area]):
    def __init__(self, session: Session):
        super().__init__(session, Area)


class CargoRepository(CatalogRepository[Cargo]):
    def __init__(self, session: Session):
        super().__init__(session, Cargo)


class EmpleadoRepository(Repository[Empleado]):
    def __init__(self, session: Session):
        super().__init__(session, Empleado)

    def find_by_documento(self, documento: str) -> Optional[Empleado]:
        return self.find_one(documento=documento)

    def list_with_refs(self) -> List[Empleado]:
        return (
            self._query()
            .options(joinedload(Empleado.area), joinedload(Empleado.cargo))
            .order_by(Empleado.apellido, Empleado.nombre)
            .all()
        )

    def get_with_refs(self, id: str) -> Optional[Empleado]:
        return (
            self._query()
            .options(joinedload(Empleado.area), joinedload(Empleado.cargo))
            .filter(Empleado.id == id)
            .first()
        )


class NominaRepository(Repository[Nomina]):
    def __init__(self, session: Session):
        super().__init__(session, Nomina)

    def _with_refs(self):
        return self._query().options(
            joinedload(Nomina.empleado),
            selectinload(Nomina.devengos),
            selectinload(Nomina.deducciones),
        )

    def list_with_refs(self) -> List[Nomina]:
        return self._with_refs().order_by(Nomina.periodo, Nomina.empleado_id).all()

    def get_with_refs(self, id: str) -> Optional[Nomina]:
        return self._with_refs().filter(Nomina.id == id).first()
