# acme_hr/services/etl_service.py
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
from sqlalchemy.orm import Session
from tqdm import tqdm

from acme_hr.extractors.csv_loader import load_csv_rows
from acme_hr.models import Deduccion, Devengo, new_id, payroll_totals
from acme_hr.repositories import (
    AreaRepository,
    CargoRepository,
    CatalogRepository,
    EmpleadoRepository,
    NominaRepository,
)

logger = logging.getLogger(__name__)

# Number of concept/value column pairs per line item kind in nominas.csv
LINE_ITEM_SLOTS = 2

Row = Dict[str, str]


@dataclass
class StepResult:
    loaded: int = 0
    skipped: int = 0
    skipped_keys: List[str] = field(default_factory=list)

    def skip(self, key: str):
        self.skipped += 1
        self.skipped_keys.append(key)


@dataclass
class EtlSummary:
    areas: int = 0
    cargos: int = 0
    empleados: StepResult = field(default_factory=StepResult)
    nominas: StepResult = field(default_factory=StepResult)

    @property
    def skipped(self) -> int:
        return self.empleados.skipped + self.nominas.skipped


def _text(row: Row, column: str) -> str:
    value = row.get(column)
    return str(value).strip() if value is not None else ""


def _to_int(value: str) -> Optional[int]:
    if value == "":
        return None
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"invalid integer {value!r}")
    if not number.is_finite():
        raise ValueError(f"invalid integer {value!r}")
    try:
        return int(number)
    except OverflowError:
        raise ValueError(f"invalid integer {value!r}")


def _to_decimal(value: str) -> Decimal:
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"invalid decimal {value!r}")
    # NaN and Infinity are accepted by Decimal but cannot be stored
    if not number.is_finite():
        raise ValueError(f"invalid decimal {value!r}")
    return number


def _to_date(value: str) -> Optional[date]:
    if value == "":
        return None
    return pd.to_datetime(value).date()


def _split_roles(value: str) -> List[str]:
    if not value:
        return []
    return [r.strip() for r in value.split(",")]


def _load_catalog(repo: CatalogRepository, rows: List[Row], label: str) -> Dict[str, str]:
    logger.info(f"[ETL] Loading {label}: {len(rows)} row(s)")
    if not rows:
        logger.warning(f"[ETL] No {label} rows found. Skipping.")
        return {}

    for row in tqdm(rows, desc=f"Loading {label}"):
        nombre = _text(row, "nombre")
        if not nombre:
            continue
        repo.upsert_by_key({"nombre": nombre}, {"nombre": nombre})

    name_map = repo.name_map()
    logger.info(f"[ETL] {label.capitalize()} loaded; {len(name_map)} in store")
    return name_map


def load_areas(session: Session, rows: List[Row]) -> Dict[str, str]:
    """Upsert areas by name and return {nombre: id} for every stored area."""
    return _load_catalog(AreaRepository(session), rows, "areas")


def load_cargos(session: Session, rows: List[Row]) -> Dict[str, str]:
    """Upsert cargos by name and return {nombre: id} for every stored cargo."""
    return _load_catalog(CargoRepository(session), rows, "cargos")


def load_empleados(session: Session, rows: List[Row],
                   area_map: Dict[str, str], cargo_map: Dict[str, str]) -> StepResult:
    """
    Upsert employees by documento. Rows naming an unknown area or cargo, or
    carrying values that cannot be coerced, are skipped with a warning.
    """
    result = StepResult()
    logger.info(f"[ETL] Loading empleados: {len(rows)} row(s)")
    if not rows:
        logger.warning("[ETL] No empleados rows found. Skipping.")
        return result

    repo = EmpleadoRepository(session)
    for row in tqdm(rows, desc="Loading empleados"):
        documento = _text(row, "documento")
        area = _text(row, "area")
        cargo = _text(row, "cargo")

        area_id = area_map.get(area)
        if not area_id:
            logger.warning(f"[ETL] Area not found for empleado {documento}: {area!r}. Skipping empleado.")
            result.skip(documento)
            continue
        cargo_id = cargo_map.get(cargo)
        if not cargo_id:
            logger.warning(f"[ETL] Cargo not found for empleado {documento}: {cargo!r}. Skipping empleado.")
            result.skip(documento)
            continue

        try:
            values = {
                "nombre": _text(row, "nombre"),
                "apellido": _text(row, "apellido"),
                "email": _text(row, "email"),
                "edad": _to_int(_text(row, "edad")),
                "ciudad": _text(row, "ciudad"),
                "barrio": _text(row, "barrio"),
                "roles": _split_roles(_text(row, "roles")),
                "salario_base": _to_decimal(_text(row, "salarioBase")),
                "area_id": area_id,
                "cargo_id": cargo_id,
                "fecha_contratacion": _to_date(_text(row, "fechaContratacion")),
            }
        except ValueError as e:
            logger.warning(f"[ETL] Invalid data for empleado {documento}: {e}. Skipping empleado.")
            result.skip(documento)
            continue

        repo.upsert_by_key({"documento": documento}, values)
        result.loaded += 1

    logger.info(f"[ETL] Empleados loaded: {result.loaded}, skipped: {result.skipped}")
    return result


def _line_items(row: Row, prefix: str, item_cls) -> list:
    items = []
    for slot in range(1, LINE_ITEM_SLOTS + 1):
        concepto = _text(row, f"{prefix}Concepto{slot}")
        valor = _text(row, f"{prefix}Valor{slot}")
        if concepto and valor:
            items.append(item_cls(id=new_id(), concepto=concepto, valor=_to_decimal(valor)))
    return items


def load_nominas(session: Session, rows: List[Row]) -> StepResult:
    """
    Upsert payroll records by (empleado, periodo). The employee is looked up
    in the store for every row; gross salary is the employee's salarioBase
    and every total is derived from the line items.
    """
    result = StepResult()
    logger.info(f"[ETL] Loading nominas: {len(rows)} row(s)")
    if not rows:
        logger.warning("[ETL] No nominas rows found. Skipping.")
        return result

    empleados = EmpleadoRepository(session)
    nominas = NominaRepository(session)
    for row in tqdm(rows, desc="Loading nominas"):
        documento = _text(row, "documentoEmpleado")
        periodo = _text(row, "periodo")

        empleado = empleados.find_by_documento(documento)
        if empleado is None:
            logger.warning(f"[ETL] Empleado not found for nomina: {documento}. Skipping nomina.")
            result.skip(f"{documento}/{periodo}")
            continue

        try:
            devengos = _line_items(row, "devengos", Devengo)
            deducciones = _line_items(row, "deducciones", Deduccion)
            fecha_emision = _to_date(_text(row, "fechaEmision"))
        except ValueError as e:
            logger.warning(f"[ETL] Invalid data for nomina {documento}/{periodo}: {e}. Skipping nomina.")
            result.skip(f"{documento}/{periodo}")
            continue

        salario_bruto = Decimal(empleado.salario_base)
        total_devengos, total_deducciones, salario_neto = payroll_totals(
            salario_bruto,
            [d.valor for d in devengos],
            [d.valor for d in deducciones],
        )
        nominas.upsert_by_key(
            {"empleado_id": empleado.id, "periodo": periodo},
            {
                "fecha_emision": fecha_emision,
                "salario_bruto": salario_bruto,
                "devengos": devengos,
                "deducciones": deducciones,
                "total_devengos": total_devengos,
                "total_deducciones": total_deducciones,
                "salario_neto": salario_neto,
            },
        )
        result.loaded += 1

    logger.info(f"[ETL] Nominas loaded: {result.loaded}, skipped: {result.skipped}")
    return result


def run_etl(session: Session, data_folder: Union[str, Path]) -> EtlSummary:
    """
    Load areas, cargos, empleados and nominas from `data_folder`, strictly in
    that order. Any exception aborts the remaining steps and is re-raised.
    """
    data_folder = Path(data_folder)
    summary = EtlSummary()
    logger.info(f"[ETL] Starting data load from {data_folder}")
    try:
        area_map = load_areas(session, load_csv_rows(data_folder / "areas.csv"))
        summary.areas = len(area_map)
        cargo_map = load_cargos(session, load_csv_rows(data_folder / "cargos.csv"))
        summary.cargos = len(cargo_map)
        summary.empleados = load_empleados(
            session, load_csv_rows(data_folder / "empleados.csv"), area_map, cargo_map
        )
        summary.nominas = load_nominas(session, load_csv_rows(data_folder / "nominas.csv"))
    except Exception:
        session.rollback()
        logger.exception("[ETL] Data load failed")
        raise

    logger.info(
        f"[ETL] Data load completed: areas={summary.areas}, cargos={summary.cargos}, "
        f"empleados={summary.empleados.loaded}, nominas={summary.nominas.loaded}"
    )
    if summary.skipped:
        logger.warning(
            f"[ETL] {summary.skipped} row(s) skipped: "
            f"empleados={summary.empleados.skipped_keys}, nominas={summary.nominas.skipped_keys}"
        )
    return summary
