import csv

import pytest

from acme_hr.db import RecordStore

EMPLEADO_COLUMNS = [
    "documento", "nombre", "apellido", "email", "edad", "ciudad", "barrio",
    "roles", "salarioBase", "area", "cargo", "fechaContratacion",
]

NOMINA_COLUMNS = [
    "documentoEmpleado", "periodo", "fechaEmision",
    "devengosConcepto1", "devengosValor1", "devengosConcepto2", "devengosValor2",
    "deduccionesConcepto1", "deduccionesValor1", "deduccionesConcepto2", "deduccionesValor2",
]


@pytest.fixture
def store():
    store = RecordStore("sqlite://")
    store.init_db()
    yield store
    store.dispose()


@pytest.fixture
def session(store):
    session = store.session()
    yield session
    session.close()


def empleado_row(documento="1001", area="Ventas", cargo="Gerente", **overrides):
    row = {
        "documento": documento,
        "nombre": "Laura",
        "apellido": "Gómez",
        "email": "laura@acme.com",
        "edad": "34",
        "ciudad": "Bogotá",
        "barrio": "Chapinero",
        "roles": "ventas, lider",
        "salarioBase": "1000",
        "area": area,
        "cargo": cargo,
        "fechaContratacion": "2019-03-01",
    }
    row.update(overrides)
    return row


def nomina_row(documento="1001", periodo="2024-01", **overrides):
    row = {column: "" for column in NOMINA_COLUMNS}
    row.update({"documentoEmpleado": documento, "periodo": periodo, "fechaEmision": "2024-01-31"})
    row.update(overrides)
    return row


@pytest.fixture
def write_csv(tmp_path):
    def _write(name, columns, rows):
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=columns)
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return path
    return _write


@pytest.fixture
def data_folder(tmp_path, write_csv):
    write_csv("areas.csv", ["nombre"], [{"nombre": "Ventas"}, {"nombre": "Tecnología"}])
    write_csv("cargos.csv", ["nombre"], [{"nombre": "Gerente"}, {"nombre": "Desarrollador"}])
    write_csv("empleados.csv", EMPLEADO_COLUMNS, [
        empleado_row("1001"),
        empleado_row("1002", area="Tecnología", cargo="Desarrollador", salarioBase="2000", roles=""),
        empleado_row("1003", area="Logística"),
    ])
    write_csv("nominas.csv", NOMINA_COLUMNS, [
        nomina_row("1001", devengosConcepto1="Bono", devengosValor1="100",
                   deduccionesConcepto1="Salud", deduccionesValor1="50"),
        nomina_row("1002", devengosConcepto1="Horas extra", devengosValor1="300",
                   devengosConcepto2="Bono", devengosValor2="200"),
        nomina_row("9999", devengosConcepto1="Bono", devengosValor1="100"),
    ])
    return tmp_path
