import os
import logging
import streamlit as st
from supabase import create_client, Client

from gymdesk.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)
# -----------------------------
# Supabase client (safe to cache)
# -----------------------------
def build_client(url: str, key: str) -> Client:
    if not url or not key:
        raise ValueError("Supabase URL and key are required")
    logger.info("Creating Supabase client for %s", url)
    return create_client(url, key)

@st.cache_resource
def get_supabase_client() -> Client:
    return build_client(st.secrets["SUPABASE_URL"], st.secrets["SUPABASE_KEY"])

def client_from_env() -> Client:
    """Service-role client for scheduled jobs; reads SUPABASE_URL / SUPABASE_SERVICE_KEY."""
    return build_client(os.environ.get("SUPABASE_URL", ""), os.environ.get("SUPABASE_SERVICE_KEY", ""))

def get_gym_timezone() -> str:
    return st.secrets.get("GYM_TIMEZONE", DEFAULT_TIMEZONE)
