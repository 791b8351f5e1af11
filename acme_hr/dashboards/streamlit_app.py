# acme_hr/dashboards/streamlit_app.py
# Run with: streamlit run acme_hr/dashboards/streamlit_app.py
import streamlit as st
import pandas as pd
import numpy as np

from acme_hr.config import settings
from acme_hr.db import RecordStore
from acme_hr.repositories import AreaRepository, CargoRepository, EmpleadoRepository, NominaRepository

st.set_page_config(page_title="Acme Corporate HR", layout="wide", initial_sidebar_state="expanded")

CURRENCY = "$"


def to_float_safe(x):
    try:
        if x is None:
            return np.nan
        return float(x)
    except (TypeError, ValueError):
        return np.nan


def money(x):
    if pd.isna(x):
        return "-"
    return f"{CURRENCY}{x:,.2f}"


@st.cache_resource
def get_store():
    return RecordStore(settings.DATABASE_URL)


@st.cache_data(ttl=300)
def load_data_from_db():
    """Load the four collections and return them as DataFrames."""
    session = get_store().session()
    try:
        areas = pd.DataFrame([a.to_dict() for a in AreaRepository(session).find()], columns=["id", "nombre"])
        cargos = pd.DataFrame([c.to_dict() for c in CargoRepository(session).find()], columns=["id", "nombre"])

        empleados = []
        for e in EmpleadoRepository(session).list_with_refs():
            empleados.append({
                "documento": e.documento,
                "nombre": f"{e.nombre} {e.apellido}",
                "email": e.email,
                "edad": e.edad,
                "ciudad": e.ciudad,
                "barrio": e.barrio,
                "roles": ", ".join(e.roles or []),
                "area": e.area.nombre if e.area else None,
                "cargo": e.cargo.nombre if e.cargo else None,
                "salario_base": to_float_safe(e.salario_base),
                "fecha_contratacion": e.fecha_contratacion,
            })

        nominas = []
        for n in NominaRepository(session).list_with_refs():
            nominas.append({
                "periodo": n.periodo,
                "documento": n.empleado.documento if n.empleado else None,
                "empleado": f"{n.empleado.nombre} {n.empleado.apellido}" if n.empleado else None,
                "fecha_emision": n.fecha_emision,
                "salario_bruto": to_float_safe(n.salario_bruto),
                "devengos": "; ".join(f"{d.concepto}: {d.valor}" for d in n.devengos),
                "deducciones": "; ".join(f"{d.concepto}: {d.valor}" for d in n.deducciones),
                "total_devengos": to_float_safe(n.total_devengos),
                "total_deducciones": to_float_safe(n.total_deducciones),
                "salario_neto": to_float_safe(n.salario_neto),
            })
        return areas, cargos, pd.DataFrame(empleados), pd.DataFrame(nominas)
    finally:
        session.close()


# Load data
areas_df, cargos_df, empleados_df, nominas_df = load_data_from_db()

st.title("Acme Corporate")
st.markdown("Áreas, cargos, empleados y nóminas cargados en el sistema.")

if empleados_df.empty and nominas_df.empty and areas_df.empty:
    st.info("No records found. Run the loader first (python -m acme_hr.scripts.load_data).")
    st.stop()

# Sidebar filters
with st.sidebar:
    st.header("Filtros")
    periodos = sorted(nominas_df["periodo"].dropna().unique()) if not nominas_df.empty else []
    selected_periodos = st.multiselect("Periodos de nómina", periodos, default=None)
    area_names = sorted(areas_df["nombre"].dropna().unique())
    selected_areas = st.multiselect("Áreas", area_names, default=None)

filtered_empleados = empleados_df
if selected_areas and not empleados_df.empty:
    filtered_empleados = empleados_df[empleados_df["area"].isin(selected_areas)]

filtered_nominas = nominas_df
if not nominas_df.empty:
    if selected_periodos:
        filtered_nominas = filtered_nominas[filtered_nominas["periodo"].isin(selected_periodos)]
    if selected_areas:
        filtered_nominas = filtered_nominas[filtered_nominas["documento"].isin(filtered_empleados["documento"])]

# KPIs row
col1, col2, col3, col4 = st.columns(4)
col1.metric("Áreas", len(areas_df))
col2.metric("Cargos", len(cargos_df))
col3.metric("Empleados", len(filtered_empleados))
col4.metric("Total neto", money(filtered_nominas["salario_neto"].sum(min_count=1)) if not filtered_nominas.empty else "-")

st.divider()

tab_areas, tab_cargos, tab_empleados, tab_nominas = st.tabs(["Áreas", "Cargos", "Empleados", "Nóminas"])

with tab_areas:
    st.subheader("Áreas")
    counts = filtered_empleados.groupby("area").size() if not filtered_empleados.empty else pd.Series(dtype=int)
    view = areas_df.assign(empleados=areas_df["nombre"].map(counts).fillna(0).astype(int))
    st.dataframe(view[["nombre", "empleados"]], use_container_width=True)

with tab_cargos:
    st.subheader("Cargos")
    counts = filtered_empleados.groupby("cargo").size() if not filtered_empleados.empty else pd.Series(dtype=int)
    view = cargos_df.assign(empleados=cargos_df["nombre"].map(counts).fillna(0).astype(int))
    st.dataframe(view[["nombre", "empleados"]], use_container_width=True)

with tab_empleados:
    st.subheader("Empleados")
    if filtered_empleados.empty:
        st.write("No hay empleados para los filtros seleccionados.")
    else:
        display_df = filtered_empleados.copy()
        display_df["salario_base"] = display_df["salario_base"].apply(money)
        st.dataframe(display_df, use_container_width=True)
        st.subheader("Salario base promedio por área")
        st.bar_chart(filtered_empleados.groupby("area")["salario_base"].mean())

with tab_nominas:
    st.subheader("Nóminas")
    if filtered_nominas.empty:
        st.write("No hay nóminas para los filtros seleccionados.")
    else:
        st.subheader("Bruto vs neto por periodo")
        ts = filtered_nominas.groupby("periodo").agg({"salario_bruto": "sum", "salario_neto": "sum"}).sort_index()
        st.line_chart(ts)

        display_df = filtered_nominas.copy()
        for col in ("salario_bruto", "total_devengos", "total_deducciones", "salario_neto"):
            display_df[col] = display_df[col].apply(money)
        st.dataframe(display_df.sort_values("periodo", ascending=False), use_container_width=True)

        csv_bytes = filtered_nominas.to_csv(index=False).encode("utf-8")
        st.download_button("Descargar CSV", data=csv_bytes, file_name="nominas_filtradas.csv", mime="text/csv")
