"""Streamlit dashboard for the daily GitHub work report."""

from __future__ import annotations

import asyncio
from dataclasses import asdict

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from gh_report.activity import local_now, lookback_cutoff
from gh_report.config import DEFAULT_LOOKBACK_DAYS, GITHUB_TOKEN, split_repos
from gh_report.exceptions import ReportError
from gh_report.models import Options, RepoReport
from gh_report.runner import fetch_reports
from gh_report.summary import build_summary_prompt, extract_plan_items, extract_work_items

WORK_KIND_COLORS = {
    "pr": "#FF6B6B",
    "issue": "#4ECDC4",
    "comment": "#FFD166",
    "review": "#6C8EBF",
}


# ── Data loading ────────────────────────────────────────────────────────────

def _collect(repos: tuple[str, ...], days: int, user: str | None, token: str) -> list[RepoReport]:
    """Run one collection; results live in session state, not a cache."""
    options = Options(repos=list(repos), days=days, user=user)
    return asyncio.run(fetch_reports(options, token))


def _work_frame(reports: list[RepoReport], user: str | None) -> pd.DataFrame:
    items = extract_work_items(reports, user)
    return pd.DataFrame(
        [asdict(i) for i in items],
        columns=["kind", "repo", "number", "title", "state", "review_info", "url"],
    )


def _plan_frame(reports: list[RepoReport], user: str | None) -> pd.DataFrame:
    items = extract_plan_items(reports, user)
    return pd.DataFrame(
        [asdict(i) for i in items],
        columns=["repo", "number", "title", "status", "source", "url"],
    )


# ── Dashboard ───────────────────────────────────────────────────────────────

def main() -> None:
    """Render the Streamlit dashboard."""
    st.set_page_config(page_title="GitHub Daily Report", layout="wide")

    # ── Sidebar inputs ──────────────────────────────────────────────────
    with st.sidebar:
        st.header("Report")
        repos_text = st.text_area("Repositories (owner/repo, comma or newline separated)")
        days = st.number_input(
            "Lookback days", min_value=1, max_value=90, value=DEFAULT_LOOKBACK_DAYS
        )
        user = st.text_input("User login (optional)").strip() or None
        token = st.text_input("GitHub token", value=GITHUB_TOKEN or "", type="password")
        run = st.button("Generate", type="primary")

    st.markdown("## GitHub Daily Report")
    st.caption("Today's work · tomorrow's plan · current iterations")

    if run:
        repos = tuple(split_repos(repos_text.replace("\n", ",")))
        if not repos:
            st.error("Enter at least one repository.")
            return
        if not token:
            st.error("A GitHub token is required.")
            return
        try:
            with st.spinner("Fetching GitHub data..."):
                st.session_state["reports"] = _collect(repos, int(days), user, token)
                st.session_state["params"] = (int(days), user)
        except ReportError as exc:
            st.error(f"Collection failed: {exc}")
            return

    reports: list[RepoReport] | None = st.session_state.get("reports")
    if reports is None:
        st.info("Enter repositories in the sidebar and press **Generate**.")
        return
    days_used, user_used = st.session_state["params"]

    work_df = _work_frame(reports, user_used)
    plan_df = _plan_frame(reports, user_used)

    col_h1, col_h2, col_h3 = st.columns(3)
    col_h1.metric("Repositories", len(reports))
    col_h2.metric("Work items today", len(work_df))
    col_h3.metric("Plan items", len(plan_df))

    # ── Side-by-side: table (left) + chart (right) ──────────────────────
    col_table, col_chart = st.columns([3, 2])

    with col_table:
        st.markdown("**Today's work**")
        if work_df.empty:
            st.warning("No work recorded today.")
        else:
            st.dataframe(
                work_df.rename(columns={
                    "kind": "Type",
                    "repo": "Repo",
                    "number": "Number",
                    "title": "Title",
                    "state": "State",
                    "review_info": "Reviews",
                    "url": "URL",
                }),
                use_container_width=True,
                hide_index=True,
            )

    with col_chart:
        st.markdown("**Work items by repository**")
        if not work_df.empty:
            counts = (
                work_df.groupby(["repo", "kind"]).size().unstack(fill_value=0)
            )
            fig = go.Figure()
            for kind in counts.columns:
                fig.add_trace(go.Bar(
                    x=counts.index,
                    y=counts[kind],
                    name=kind,
                    marker_color=WORK_KIND_COLORS.get(kind),
                ))
            fig.update_layout(
                barmode="stack",
                xaxis_title="Repository",
                yaxis_title="Items",
                legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
                margin=dict(t=10, b=40, l=50, r=10),
                height=260,
            )
            st.plotly_chart(fig, use_container_width=True)

    st.markdown("**Tomorrow's plan**")
    if plan_df.empty:
        st.warning("Nothing planned.")
    else:
        st.dataframe(
            plan_df.rename(columns={
                "repo": "Repo",
                "number": "Number",
                "title": "Title",
                "status": "Status",
                "source": "Source",
                "url": "URL",
            }),
            use_container_width=True,
            hide_index=True,
        )

    # ── Prompt (collapsed) ──────────────────────────────────────────────
    with st.expander("Prompt for an assistant"):
        now = local_now()
        st.code(
            build_summary_prompt(
                reports, lookback_cutoff(days_used, now), now, user_used, now
            ),
            language="text",
        )


if __name__ == "__main__":
    main()
