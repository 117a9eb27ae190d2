"""
Ledger dashboard: latest reconciliation, open positions and data-quality warnings.
Run from repo root: streamlit run dashboard/app.py
Or with data dir: LEDGER_DASHBOARD_DATA_DIR=/path/to/data streamlit run dashboard/app.py
"""

import streamlit as st

from data_reader import (
    _data_dir,
    fill_log_path,
    get_journal_events,
    get_latest_run,
    get_open_positions,
)

st.set_page_config(page_title="Fill Ledger", layout="wide")
st.title("Fill Ledger Dashboard")

data_dir = _data_dir()
latest = get_latest_run(data_dir)

col_refresh, col_auto = st.columns([1, 3])
with col_refresh:
    if st.button("Refresh"):
        st.rerun()
with col_auto:
    auto_refresh = st.checkbox("Auto-refresh every 60s", value=False)

if latest is None:
    st.warning(f"No runs journaled under: `{data_dir}`")
    st.caption("Run `fills pnl` (or any report command) with the journal enabled to record a reconciliation.")
else:
    st.caption(f"Last run {latest.get('ts_utc', '')[:19]} from {latest.get('source', '')}")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        st.metric("Total P&L", f"${latest.get('total_pnl', 0.0):,.2f}")
    with c2:
        st.metric("Realized", f"${latest.get('realized_pnl', 0.0):,.2f}")
    with c3:
        st.metric("Unrealized", f"${latest.get('unrealized_pnl', 0.0):,.2f}")
    with c4:
        st.metric("Open positions", latest.get("open_positions", 0))

st.subheader("Open positions")
rows = get_open_positions()
if not rows:
    st.caption(f"No open positions in `{fill_log_path()}`.")
else:
    st.dataframe(
        [
            {
                "instrument": r["instrument_id"],
                "shares": r["net_shares"],
                "avg price": r["average_price"],
                "cost basis": r["cost_basis"],
                "value": r["current_value"],
                "P&L": r["unrealized_pnl"],
                "age (days)": r["age_days"],
                "labels": ", ".join(r["labels"]),
            }
            for r in rows
        ],
        use_container_width=True,
    )

with st.expander("Recent warnings", expanded=bool(latest and latest.get("warning_codes"))):
    warnings = get_journal_events("warning", limit=20, data_dir=data_dir)
    if not warnings:
        st.caption("No warnings journaled.")
    else:
        for e in warnings:
            ts = e.get("ts_utc", "")[:19]
            st.text(f"{ts}  {e.get('code', '')}: {e.get('message', '')}")

with st.expander("Run history", expanded=False):
    runs = get_journal_events("reconciliation", limit=20, data_dir=data_dir)
    for e in runs:
        ts = e.get("ts_utc", "")[:19]
        st.text(f"{ts}  trades={e.get('trades')}  open={e.get('open_positions')}  total_pnl={e.get('total_pnl', 0.0):.2f}")

if auto_refresh:
    import time
    time.sleep(60)
    st.rerun()
