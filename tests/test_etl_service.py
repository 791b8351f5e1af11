from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from acme_hr.models import Area, Cargo, Devengo, Empleado, Nomina
from acme_hr.repositories import AreaRepository, EmpleadoRepository, NominaRepository, Repository
from acme_hr.services import etl_service
from acme_hr.services.etl_service import (
    load_areas,
    load_cargos,
    load_empleados,
    load_nominas,
    run_etl,
)
from conftest import empleado_row, nomina_row


@pytest.fixture
def maps(session):
    area_map = load_areas(session, [{"nombre": "Ventas"}, {"nombre": "Tecnología"}])
    cargo_map = load_cargos(session, [{"nombre": "Gerente"}, {"nombre": "Desarrollador"}])
    return area_map, cargo_map


def _snapshot(session):
    """Store contents without generated ids, for comparing two loader runs."""
    areas = sorted(a.nombre for a in session.query(Area))
    cargos = sorted(c.nombre for c in session.query(Cargo))
    empleados = sorted(
        (e.documento, e.nombre, e.edad, tuple(e.roles), e.salario_base, e.area.nombre, e.cargo.nombre)
        for e in session.query(Empleado)
    )
    nominas = sorted(
        (
            n.empleado.documento, n.periodo, n.salario_bruto,
            tuple((d.concepto, d.valor) for d in n.devengos),
            tuple((d.concepto, d.valor) for d in n.deducciones),
            n.total_devengos, n.total_deducciones, n.salario_neto,
        )
        for n in session.query(Nomina)
    )
    return areas, cargos, empleados, nominas


# areas / cargos

def test_load_areas_single_row(session):
    area_map = load_areas(session, [{"nombre": "Ventas"}])

    areas = AreaRepository(session).find()
    assert len(areas) == 1
    assert area_map == {"Ventas": areas[0].id}


def test_load_areas_empty_input_writes_nothing(session):
    assert load_areas(session, []) == {}
    assert AreaRepository(session).find() == []


def test_load_areas_is_idempotent(session):
    first = load_areas(session, [{"nombre": "Ventas"}, {"nombre": "Ventas"}])
    second = load_areas(session, [{"nombre": "Ventas"}])
    assert first == second
    assert len(AreaRepository(session).find()) == 1


def test_load_cargos_map_includes_existing_records(session):
    session.add(Cargo(nombre="Asistente"))
    session.commit()

    cargo_map = load_cargos(session, [{"nombre": "Gerente"}])

    assert set(cargo_map) == {"Asistente", "Gerente"}


def test_load_areas_store_fault_propagates(session, monkeypatch):
    def boom(self, key, values):
        raise SQLAlchemyError("write failed")

    monkeypatch.setattr(Repository, "upsert_by_key", boom)
    with pytest.raises(SQLAlchemyError):
        load_areas(session, [{"nombre": "Ventas"}])


# empleados

def test_load_empleados_coerces_fields(session, maps):
    area_map, cargo_map = maps

    result = load_empleados(session, [empleado_row("1001")], area_map, cargo_map)

    assert (result.loaded, result.skipped) == (1, 0)
    empleado = EmpleadoRepository(session).find_by_documento("1001")
    assert empleado.edad == 34
    assert empleado.salario_base == Decimal("1000")
    assert empleado.fecha_contratacion == date(2019, 3, 1)
    assert empleado.roles == ["ventas", "lider"]
    assert empleado.area_id == area_map["Ventas"]
    assert empleado.cargo_id == cargo_map["Gerente"]
    data = empleado.to_dict()
    assert data["direccion"] == {"ciudad": "Bogotá", "barrio": "Chapinero"}


def test_load_empleados_empty_roles(session, maps):
    load_empleados(session, [empleado_row("1001", roles="")], *maps)
    assert EmpleadoRepository(session).find_by_documento("1001").roles == []


def test_load_empleados_skips_unknown_area_and_cargo(session, maps):
    rows = [
        empleado_row("1001", area="Logística"),
        empleado_row("1002", cargo="Astronauta"),
        empleado_row("1003"),
    ]

    result = load_empleados(session, rows, *maps)

    assert result.loaded == 1
    assert result.skipped == 2
    assert result.skipped_keys == ["1001", "1002"]
    assert [e.documento for e in EmpleadoRepository(session).find()] == ["1003"]


def test_load_empleados_skips_invalid_values(session, maps):
    rows = [empleado_row("1001", salarioBase="mucho"), empleado_row("1002", edad="x"), empleado_row("1003")]

    result = load_empleados(session, rows, *maps)

    assert result.skipped_keys == ["1001", "1002"]
    assert [e.documento for e in EmpleadoRepository(session).find()] == ["1003"]


@pytest.mark.parametrize("overrides", [
    {"edad": "Infinity"},
    {"edad": "-inf"},
    {"salarioBase": "NaN"},
    {"salarioBase": "Infinity"},
])
def test_load_empleados_skips_non_finite_numbers(session, maps, overrides):
    rows = [empleado_row("1001", **overrides), empleado_row("1002")]

    result = load_empleados(session, rows, *maps)

    assert result.skipped_keys == ["1001"]
    assert result.loaded == 1
    assert [e.documento for e in EmpleadoRepository(session).find()] == ["1002"]


def test_load_empleados_updates_by_documento(session, maps):
    load_empleados(session, [empleado_row("1001")], *maps)
    load_empleados(session, [empleado_row("1001", salarioBase="1500", area="Tecnología")], *maps)

    empleados = EmpleadoRepository(session).find()
    assert len(empleados) == 1
    assert empleados[0].salario_base == Decimal("1500")
    assert empleados[0].area.nombre == "Tecnología"


# nominas

@pytest.fixture
def empleado(session, maps):
    load_empleados(session, [empleado_row("1001", salarioBase="1000")], *maps)
    return EmpleadoRepository(session).find_by_documento("1001")


def test_load_nominas_single_devengo_slot(session, empleado):
    row = nomina_row("1001", devengosConcepto1="Bono", devengosValor1="100")

    result = load_nominas(session, [row])

    assert result.loaded == 1
    nomina = NominaRepository(session).find_one(empleado_id=empleado.id, periodo="2024-01")
    assert [(d.concepto, d.valor) for d in nomina.devengos] == [("Bono", Decimal("100"))]
    assert nomina.deducciones == []
    assert nomina.total_devengos == Decimal("100")
    assert nomina.total_deducciones == Decimal("0")


def test_load_nominas_net_salary(session, empleado):
    row = nomina_row(
        "1001",
        devengosConcepto1="Bono", devengosValor1="60",
        devengosConcepto2="Extra", devengosValor2="40",
        deduccionesConcepto1="Salud", deduccionesValor1="50",
    )

    load_nominas(session, [row])

    nomina = NominaRepository(session).find_one(periodo="2024-01")
    assert nomina.salario_bruto == Decimal("1000")
    assert nomina.total_devengos == Decimal("100")
    assert nomina.total_deducciones == Decimal("50")
    assert nomina.salario_neto == Decimal("1050")
    assert nomina.salario_neto == nomina.salario_bruto + nomina.total_devengos - nomina.total_deducciones
    assert nomina.fecha_emision == date(2024, 1, 31)


def test_load_nominas_ignores_csv_gross_salary(session, empleado):
    row = nomina_row("1001", salarioBruto="999999")

    load_nominas(session, [row])

    nomina = NominaRepository(session).find_one(periodo="2024-01")
    assert nomina.salario_bruto == empleado.salario_base


def test_load_nominas_incomplete_slot_is_ignored(session, empleado):
    row = nomina_row(
        "1001",
        devengosConcepto1="Bono", devengosValor1="",
        devengosConcepto2="", devengosValor2="80",
        deduccionesConcepto2="Pensión", deduccionesValor2="40",
    )

    load_nominas(session, [row])

    nomina = NominaRepository(session).find_one(periodo="2024-01")
    assert nomina.devengos == []
    assert [d.concepto for d in nomina.deducciones] == ["Pensión"]
    assert nomina.salario_neto == Decimal("960")


def test_load_nominas_line_items_get_fresh_ids(session, empleado):
    row = nomina_row("1001", devengosConcepto1="Bono", devengosValor1="1",
                     devengosConcepto2="Bono", devengosValor2="1")
    load_nominas(session, [row])

    ids = [d.id for d in NominaRepository(session).find_one(periodo="2024-01").devengos]
    assert len(set(ids)) == 2


@pytest.mark.parametrize("overrides", [
    {"devengosConcepto1": "Bono", "devengosValor1": "NaN"},
    {"deduccionesConcepto2": "Salud", "deduccionesValor2": "Infinity"},
])
def test_load_nominas_skips_non_finite_values(session, empleado, overrides):
    rows = [
        nomina_row("1001", **overrides),
        nomina_row("1001", periodo="2024-02", devengosConcepto1="Bono", devengosValor1="100"),
    ]

    result = load_nominas(session, rows)

    assert result.skipped_keys == ["1001/2024-01"]
    assert [n.periodo for n in NominaRepository(session).find()] == ["2024-02"]
    assert NominaRepository(session).find_one(periodo="2024-02").salario_neto == Decimal("1100")


def test_load_nominas_skips_unknown_employee(session, empleado):
    rows = [nomina_row("9999"), nomina_row("1001")]

    result = load_nominas(session, rows)

    assert result.loaded == 1
    assert result.skipped_keys == ["9999/2024-01"]
    assert len(NominaRepository(session).find()) == 1


def test_load_nominas_upserts_by_employee_and_period(session, empleado):
    load_nominas(session, [nomina_row("1001", devengosConcepto1="Bono", devengosValor1="100")])
    load_nominas(session, [nomina_row("1001", devengosConcepto1="Bono", devengosValor1="300")])
    load_nominas(session, [nomina_row("1001", periodo="2024-02")])

    nominas = NominaRepository(session).find()
    assert sorted(n.periodo for n in nominas) == ["2024-01", "2024-02"]
    enero = NominaRepository(session).find_one(periodo="2024-01")
    assert enero.total_devengos == Decimal("300")
    assert session.query(Devengo).count() == 1


def test_load_nominas_uses_current_salary(session, maps, empleado):
    load_empleados(session, [empleado_row("1001", salarioBase="2500")], *maps)

    load_nominas(session, [nomina_row("1001")])

    assert NominaRepository(session).find_one(periodo="2024-01").salario_bruto == Decimal("2500")


# orchestration

def test_run_etl_loads_everything(session, data_folder):
    summary = run_etl(session, data_folder)

    assert summary.areas == 2
    assert summary.cargos == 2
    assert summary.empleados.loaded == 2
    assert summary.empleados.skipped_keys == ["1003"]
    assert summary.nominas.loaded == 2
    assert summary.nominas.skipped_keys == ["9999/2024-01"]
    assert summary.skipped == 2

    _, _, empleados, nominas = _snapshot(session)
    assert [e[0] for e in empleados] == ["1001", "1002"]
    by_doc = {n[0]: n for n in nominas}
    assert by_doc["1001"][-1] == Decimal("1050")
    assert by_doc["1002"][-1] == Decimal("2500")


def test_run_etl_twice_is_idempotent(session, data_folder):
    run_etl(session, data_folder)
    first = _snapshot(session)

    run_etl(session, data_folder)

    assert _snapshot(session) == first


def test_run_etl_without_sources(session, tmp_path):
    summary = run_etl(session, tmp_path)

    assert (summary.areas, summary.cargos) == (0, 0)
    assert summary.empleados.loaded == 0
    assert summary.nominas.loaded == 0
    assert session.query(Area).count() == 0


def test_run_etl_aborts_remaining_steps(session, data_folder, monkeypatch):
    calls = []

    def failing_cargos(session, rows):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(etl_service, "load_cargos", failing_cargos)
    monkeypatch.setattr(etl_service, "load_empleados", lambda *a: calls.append("empleados"))
    monkeypatch.setattr(etl_service, "load_nominas", lambda *a: calls.append("nominas"))

    with pytest.raises(SQLAlchemyError):
        run_etl(session, data_folder)

    assert calls == []
    assert session.query(Area).count() == 2
