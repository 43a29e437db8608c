# gymdesk/ui/theme.py
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

LIGHT = "light"
DARK = "dark"
KEY_THEME_MODE = "themeMode"

_PALETTES = {
    LIGHT: {
        "primary": "#808080",
        "secondary": "#333333",
        "background": "#FFFFFF",
        "surface": "#F8F9FA",
        "text": "#000000",
        "text_secondary": "#808080",
        "border": "#E0E0E0",
        "success": "#4CAF50",
        "error": "#DC3545",
        "warning": "#FF9800",
        "info": "#2196F3",
    },
    DARK: {
        "primary": "#808080",
        "secondary": "#B0B0B0",
        "background": "#000000",
        "surface": "#1A1A1A",
        "text": "#FFFFFF",
        "text_secondary": "#808080",
        "border": "#333333",
        "success": "#4CAF50",
        "error": "#F44336",
        "warning": "#FF9800",
        "info": "#2196F3",
    },
}

STATUS_COLORS = {
    "active": "#4CAF50",
    "ongoing": "#FF9800",
    "completed": "#2196F3",
    "cancelled": "#F44336",
}


class PreferenceStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...


class JsonFilePreferenceStore:
    """Key-value preferences in a small JSON file."""

    def __init__(self, path) -> None:
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable preferences file %s", self.path)
            return {}

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


@dataclass(frozen=True)
class ThemeConfig:
    mode: str
    colors: dict

    @staticmethod
    def for_mode(mode: str) -> "ThemeConfig":
        if mode not in _PALETTES:
            mode = LIGHT
        return ThemeConfig(mode=mode, colors=dict(_PALETTES[mode]))


def load_theme(store: PreferenceStore) -> ThemeConfig:
    try:
        saved = store.get(KEY_THEME_MODE)
    except OSError:
        logger.warning("Could not load theme preference", exc_info=True)
        saved = None
    return ThemeConfig.for_mode(saved if saved in _PALETTES else LIGHT)


def set_theme_mode(store: PreferenceStore, mode: str) -> ThemeConfig:
    theme = ThemeConfig.for_mode(mode)
    try:
        store.set(KEY_THEME_MODE, theme.mode)
    except OSError:
        # Still switch for this session
        logger.warning("Could not save theme preference", exc_info=True)
    return theme


def toggle_theme(store: PreferenceStore, current: ThemeConfig) -> ThemeConfig:
    return set_theme_mode(store, DARK if current.mode == LIGHT else LIGHT)


def theme_css(theme: ThemeConfig) -> str:
    c = theme.colors
    return (
        "<style>"
        f".stApp {{ background-color: {c['background']}; color: {c['text']}; }}"
        f".gd-card {{ background-color: {c['surface']}; border: 1px solid {c['border']};"
        " border-radius: 8px; padding: 8px 12px; margin-bottom: 8px; }"
        f".gd-muted {{ color: {c['text_secondary']}; }}"
        "</style>"
    )


def status_badge(status: str) -> str:
    color = STATUS_COLORS.get(status, "#9E9E9E")
    return f"<span style='background:{color};color:#fff;border-radius:4px;padding:1px 6px'>{status.upper()}</span>"
