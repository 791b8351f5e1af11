"""
Areas and cargos share the same shape ({id, nombre}, unique nombre), so both
routers come from one builder.
"""
from typing import Type

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from acme_hr.api.deps import check_id, get_session
from acme_hr.repositories import AreaRepository, CargoRepository, Repository
from acme_hr.schemas import AreaIn, CargoIn


def build_catalog_router(prefix: str, repo_cls: Type[Repository], schema, label: str) -> APIRouter:
    router = APIRouter(prefix=f"/{prefix}", tags=[prefix])

    @router.get("")
    def list_items(session: Session = Depends(get_session)):
        return [obj.to_dict() for obj in repo_cls(session).find()]

    @router.get("/{item_id}")
    def get_item(item_id: str, session: Session = Depends(get_session)):
        check_id(item_id, f"ID de {label} inválido.")
        obj = repo_cls(session).get(item_id)
        if obj is None:
            raise HTTPException(status_code=404, detail=f"No se encontró el {label}.")
        return obj.to_dict()

    @router.post("", status_code=201)
    def create_item(body: schema, session: Session = Depends(get_session)):
        repo = repo_cls(session)
        if repo.find_one(nombre=body.nombre):
            raise HTTPException(status_code=409, detail=f"Ya existe un {label} con este nombre.")
        return repo.insert({"nombre": body.nombre}).to_dict()

    @router.put("/{item_id}")
    def update_item(item_id: str, body: schema, session: Session = Depends(get_session)):
        check_id(item_id, f"ID de {label} inválido.")
        repo = repo_cls(session)
        duplicate = repo.find_one(nombre=body.nombre)
        if duplicate is not None and duplicate.id != item_id:
            raise HTTPException(status_code=409, detail=f"Ya existe un {label} con este nombre.")
        obj = repo.update(item_id, {"nombre": body.nombre})
        if obj is None:
            raise HTTPException(status_code=404, detail=f"No se encontró el {label} para actualizar.")
        return {**obj.to_dict(), "message": f"Se actualizó el {label} correctamente."}

    @router.delete("/{item_id}")
    def delete_item(item_id: str, session: Session = Depends(get_session)):
        check_id(item_id, f"ID de {label} inválido.")
        if repo_cls(session).delete(id=item_id) == 0:
            raise HTTPException(status_code=404, detail=f"No se encontró el {label} para eliminar.")
        return {"message": f"Se eliminó el {label} correctamente."}

    return router


areas_router = build_catalog_router("areas", AreaRepository, AreaIn, "área")
cargos_router = build_catalog_router("cargos", CargoRepository, CargoIn, "cargo")
