"""
Sanctions Bot - Config Tests
============================

Tests for reading config.json into SanctionsConfig.
"""

import json

from utils.config_utils import SanctionsConfig, hex_to_int, load_config


class TestHexToInt:

    def test_parses_hex(self):
        assert hex_to_int("#FFCC8B") == 0xFFCC8B
        assert hex_to_int("ff5860") == 0xFF5860

    def test_fallback_on_garbage(self):
        assert hex_to_int("not-a-color") == 0xFFCC8B
        assert hex_to_int(None, fallback=1) == 1


class TestSanctionsConfig:

    def test_defaults_from_empty_config(self):
        cfg = SanctionsConfig.from_dict({}, env={})

        assert cfg.warn_limit == 3
        assert cfg.strike_limit == 7
        assert cfg.log_channel_id == 0
        assert cfg.sanction_roles == []
        assert cfg.db_path == "data/sanctions.json"
        assert cfg.dm_embed.title_warn == "You have received a WARN"
        assert cfg.list_embed.public is True

    def test_reads_all_sections(self):
        raw = {
            "general": {"embed_color": "#112233", "timezone": "Europe/Madrid"},
            "text_channel_ids": {"bot_logs": "123456789012345678"},
            "role_ids": {"sanction_roles": ["1", "bad", 2], "annul_roles": ["3"], "list_roles": []},
            "file_paths": {"sanctions_db": "custom/ledger.json"},
            "features": {"sanctions": {
                "limits": {"warns": 5, "strikes": 10},
                "dm_embed": {"title_strike": "Strike!"},
                "list_embed": {"title": "Active", "public": False},
            }},
        }

        cfg = SanctionsConfig.from_dict(raw, env={})

        assert cfg.warn_limit == 5
        assert cfg.strike_limit == 10
        assert cfg.log_channel_id == 123456789012345678
        assert cfg.sanction_roles == [1, 2]
        assert cfg.annul_roles == [3]
        assert cfg.db_path == "custom/ledger.json"
        assert cfg.timezone == "Europe/Madrid"
        assert cfg.embed_color_int == 0x112233
        assert cfg.dm_embed.title_strike == "Strike!"
        assert cfg.dm_embed.title_warn == "You have received a WARN"
        # embed colors inherit the general color unless overridden
        assert cfg.dm_embed.color == "#112233"
        assert cfg.panel_embed.color == "#112233"
        assert cfg.list_embed.title == "Active"
        assert cfg.list_embed.public is False

    def test_env_overrides_ledger_path(self):
        raw = {"file_paths": {"sanctions_db": "custom/ledger.json"}}

        cfg = SanctionsConfig.from_dict(raw, env={"SANCTIONS_PATH": "/srv/sanctions.json"})

        assert cfg.db_path == "/srv/sanctions.json"


class TestLoadConfig:

    def test_missing_file_is_empty(self, tmp_path):
        assert load_config(str(tmp_path / "nope.json")) == {}

    def test_reads_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"general": {"bot_prefix": "?"}}), encoding="utf-8")

        assert load_config(str(path))["general"]["bot_prefix"] == "?"
