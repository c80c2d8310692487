# utils/config_utils.py

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_SANCTIONS_DB = "data/sanctions.json"
DEFAULT_EMBED_COLOR = "#FFCC8B"


def hex_to_int(color_hex: Optional[str], fallback: int = 0xFFCC8B) -> int:
    """Convert "#RRGGBB" to the int discord.Embed expects."""
    try:
        return int(str(color_hex).strip().lstrip("#"), 16)
    except (TypeError, ValueError):
        return fallback


def _id_list(raw: Any) -> List[int]:
    ids: List[int] = []
    for item in raw or []:
        try:
            ids.append(int(item))
        except (TypeError, ValueError):
            continue
    return ids


@dataclass
class DmEmbedConfig:
    color: str = DEFAULT_EMBED_COLOR
    title_warn: str = "You have received a WARN"
    title_strike: str = "You have received a STRIKE"
    title_annul: str = "Sanction annulled"
    logo_url: str = ""
    image_url: str = ""
    footer: str = "Moderation notice"


@dataclass
class ListEmbedConfig:
    title: str = "📋 Active sanctions"
    logo_url: str = ""
    image_url: str = ""
    footer: str = "Sanctions panel"
    public: bool = True


@dataclass
class PanelEmbedConfig:
    title: str = "Sanctions panel"
    color: str = DEFAULT_EMBED_COLOR
    logo_url: str = ""
    image_url: str = ""
    footer: str = "Moderation panel"


@dataclass
class SanctionsConfig:
    """
    Everything the sanctions feature reads from config.json, built once at
    startup and handed to the router and the cog.
    """

    warn_limit: int = 3
    strike_limit: int = 7
    log_channel_id: int = 0
    sanction_roles: List[int] = field(default_factory=list)
    annul_roles: List[int] = field(default_factory=list)
    list_roles: List[int] = field(default_factory=list)
    db_path: str = DEFAULT_SANCTIONS_DB
    embed_color: str = DEFAULT_EMBED_COLOR
    timezone: str = "UTC"
    dm_embed: DmEmbedConfig = field(default_factory=DmEmbedConfig)
    list_embed: ListEmbedConfig = field(default_factory=ListEmbedConfig)
    panel_embed: PanelEmbedConfig = field(default_factory=PanelEmbedConfig)

    @property
    def embed_color_int(self) -> int:
        return hex_to_int(self.embed_color)

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any], env: Optional[Dict[str, str]] = None) -> "SanctionsConfig":
        env = os.environ if env is None else env
        general = cfg.get("general", {}) or {}
        text_channels = cfg.get("text_channel_ids", {}) or {}
        role_ids = cfg.get("role_ids", {}) or {}
        file_paths = cfg.get("file_paths", {}) or {}
        scfg = (cfg.get("features", {}) or {}).get("sanctions", {}) or {}
        limits = scfg.get("limits", {}) or {}

        dm = scfg.get("dm_embed", {}) or {}
        lst = scfg.get("list_embed", {}) or {}
        panel = scfg.get("panel_embed", {}) or {}
        embed_color = general.get("embed_color", DEFAULT_EMBED_COLOR)

        return cls(
            warn_limit=int(limits.get("warns", 3)),
            strike_limit=int(limits.get("strikes", 7)),
            log_channel_id=int(text_channels.get("bot_logs", "0") or 0),
            sanction_roles=_id_list(role_ids.get("sanction_roles")),
            annul_roles=_id_list(role_ids.get("annul_roles")),
            list_roles=_id_list(role_ids.get("list_roles")),
            db_path=env.get("SANCTIONS_PATH") or file_paths.get("sanctions_db", DEFAULT_SANCTIONS_DB),
            embed_color=embed_color,
            timezone=general.get("timezone", "UTC"),
            dm_embed=DmEmbedConfig(
                color=dm.get("color", embed_color),
                title_warn=dm.get("title_warn", DmEmbedConfig.title_warn),
                title_strike=dm.get("title_strike", DmEmbedConfig.title_strike),
                title_annul=dm.get("title_annul", DmEmbedConfig.title_annul),
                logo_url=dm.get("logo_url", ""),
                image_url=dm.get("image_url", ""),
                footer=dm.get("footer", DmEmbedConfig.footer),
            ),
            list_embed=ListEmbedConfig(
                title=lst.get("title", ListEmbedConfig.title),
                logo_url=lst.get("logo_url", ""),
                image_url=lst.get("image_url", ""),
                footer=lst.get("footer", ListEmbedConfig.footer),
                public=bool(lst.get("public", True)),
            ),
            panel_embed=PanelEmbedConfig(
                title=panel.get("title", PanelEmbedConfig.title),
                color=panel.get("color", embed_color),
                logo_url=panel.get("logo_url", ""),
                image_url=panel.get("image_url", ""),
                footer=panel.get("footer", PanelEmbedConfig.footer),
            ),
        )


def load_config(path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Read config.json. A missing file yields an empty dict so every setting
    falls back to its default; malformed JSON is left to raise.
    """
    p = Path(path)
    if not p.exists():
        return {}
    with open(p, "r", encoding="utf-8") as f:
        return json.load(f)
