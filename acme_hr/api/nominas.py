from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from acme_hr.api.deps import check_id, is_valid_id, get_session
from acme_hr.models import Deduccion, Devengo, Nomina, new_id
from acme_hr.repositories import EmpleadoRepository, NominaRepository
from acme_hr.schemas import LineItemIn, NominaIn

router = APIRouter(prefix="/nominas", tags=["nominas"])


def _items(payload: List[LineItemIn], item_cls, existing: Optional[Dict[str, object]] = None) -> list:
    # Items that keep an id already stored on this nomina are updated in place
    existing = existing or {}
    items = []
    for item in payload:
        obj = existing.get(item.id) if item.id else None
        if obj is None:
            obj = item_cls(id=new_id())
        obj.concepto = item.concepto
        obj.valor = item.valor
        items.append(obj)
    return items


def _check_empleado(session: Session, body: NominaIn):
    if not is_valid_id(body.empleadoId):
        raise HTTPException(status_code=400, detail="ID de empleado inválido.")
    if EmpleadoRepository(session).get(body.empleadoId) is None:
        raise HTTPException(status_code=400, detail="El empleado indicado no existe.")


def _check_duplicate(repo: NominaRepository, body: NominaIn, nomina_id: Optional[str] = None):
    duplicate = repo.find_one(empleado_id=body.empleadoId, periodo=body.periodo)
    if duplicate is not None and duplicate.id != nomina_id:
        raise HTTPException(status_code=409, detail="Ya existe una nómina para este empleado y periodo.")


def _apply(nomina: Nomina, body: NominaIn):
    nomina.empleado_id = body.empleadoId
    nomina.periodo = body.periodo
    nomina.fecha_emision = body.fechaEmision
    nomina.salario_bruto = body.salarioBruto
    nomina.devengos = _items(body.devengos, Devengo, {d.id: d for d in nomina.devengos})
    nomina.deducciones = _items(body.deducciones, Deduccion, {d.id: d for d in nomina.deducciones})
    nomina.recompute_totals()


@router.get("")
def list_nominas(session: Session = Depends(get_session)):
    return [n.to_dict(include_empleado=True) for n in NominaRepository(session).list_with_refs()]


@router.get("/{nomina_id}")
def get_nomina(nomina_id: str, session: Session = Depends(get_session)):
    check_id(nomina_id, "ID de nómina inválido.")
    nomina = NominaRepository(session).get_with_refs(nomina_id)
    if nomina is None:
        raise HTTPException(status_code=404, detail="Nómina no encontrada.")
    return nomina.to_dict(include_empleado=True)


@router.post("", status_code=201)
def create_nomina(body: NominaIn, session: Session = Depends(get_session)):
    _check_empleado(session, body)
    repo = NominaRepository(session)
    _check_duplicate(repo, body)
    nomina = Nomina(id=new_id())
    _apply(nomina, body)
    return repo.save(nomina).to_dict()


@router.put("/{nomina_id}")
def update_nomina(nomina_id: str, body: NominaIn, session: Session = Depends(get_session)):
    check_id(nomina_id, "ID de nómina inválido.")
    repo = NominaRepository(session)
    nomina = repo.get(nomina_id)
    if nomina is None:
        raise HTTPException(status_code=404, detail="Nómina no encontrada para actualizar.")
    _check_empleado(session, body)
    _check_duplicate(repo, body, nomina_id)
    _apply(nomina, body)
    repo.save(nomina)
    return {**nomina.to_dict(), "message": "Nómina actualizada correctamente."}


@router.delete("/{nomina_id}")
def delete_nomina(nomina_id: str, session: Session = Depends(get_session)):
    check_id(nomina_id, "ID de nómina inválido.")
    if NominaRepository(session).delete(id=nomina_id) == 0:
        raise HTTPException(status_code=404, detail="Nómina no encontrada para eliminar.")
    return {"message": "Nómina eliminada correctamente."}
