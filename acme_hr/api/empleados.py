from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from acme_hr.api.deps import check_id, is_valid_id, get_session
from acme_hr.repositories import AreaRepository, CargoRepository, EmpleadoRepository
from acme_hr.schemas import EmpleadoIn

router = APIRouter(prefix="/empleados", tags=["empleados"])


def _values(body: EmpleadoIn) -> dict:
    return {
        "documento": body.documento,
        "nombre": body.nombre,
        "apellido": body.apellido,
        "email": body.email,
        "edad": body.edad,
        "ciudad": body.ciudad,
        "barrio": body.barrio,
        "roles": list(body.roles or []),
        "salario_base": body.salarioBase,
        "area_id": body.areaId,
        "cargo_id": body.cargoId,
        "fecha_contratacion": body.fechaContratacion,
    }


def _check_refs(session: Session, body: EmpleadoIn):
    if not is_valid_id(body.areaId) or not is_valid_id(body.cargoId):
        raise HTTPException(status_code=400, detail="ID de área o cargo inválido.")
    if AreaRepository(session).get(body.areaId) is None:
        raise HTTPException(status_code=400, detail="El área indicada no existe.")
    if CargoRepository(session).get(body.cargoId) is None:
        raise HTTPException(status_code=400, detail="El cargo indicado no existe.")


@router.get("")
def list_empleados(session: Session = Depends(get_session)):
    return [e.to_dict(include_refs=True) for e in EmpleadoRepository(session).list_with_refs()]


@router.get("/{empleado_id}")
def get_empleado(empleado_id: str, session: Session = Depends(get_session)):
    check_id(empleado_id, "ID de empleado inválido.")
    empleado = EmpleadoRepository(session).get_with_refs(empleado_id)
    if empleado is None:
        raise HTTPException(status_code=404, detail="Empleado no encontrado.")
    return empleado.to_dict(include_refs=True)


@router.post("", status_code=201)
def create_empleado(body: EmpleadoIn, session: Session = Depends(get_session)):
    _check_refs(session, body)
    repo = EmpleadoRepository(session)
    if repo.find_by_documento(body.documento):
        raise HTTPException(status_code=409, detail="Ya existe un empleado con este documento.")
    return repo.insert(_values(body)).to_dict()


@router.put("/{empleado_id}")
def update_empleado(empleado_id: str, body: EmpleadoIn, session: Session = Depends(get_session)):
    check_id(empleado_id, "ID de empleado inválido.")
    repo = EmpleadoRepository(session)
    if repo.get(empleado_id) is None:
        raise HTTPException(status_code=404, detail="Empleado no encontrado para actualizar.")
    _check_refs(session, body)
    duplicate = repo.find_by_documento(body.documento)
    if duplicate is not None and duplicate.id != empleado_id:
        raise HTTPException(status_code=409, detail="Ya existe un empleado con este documento.")
    empleado = repo.update(empleado_id, _values(body))
    return {**empleado.to_dict(), "message": "Empleado actualizado correctamente."}


@router.delete("/{empleado_id}")
def delete_empleado(empleado_id: str, session: Session = Depends(get_session)):
    check_id(empleado_id, "ID de empleado inválido.")
    if EmpleadoRepository(session).delete(id=empleado_id) == 0:
        raise HTTPException(status_code=404, detail="Empleado no encontrado para eliminar.")
    return {"message": "Empleado eliminado correctamente."}
