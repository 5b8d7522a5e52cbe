# tests/scripts/test_manage_alerts.py
from datetime import UTC, datetime

import pytest

from signal_relay.config import Config
from signal_relay.scripts.manage_alerts import format_alert, parse_args, run_command
from signal_relay.storage.database import Database
from signal_relay.storage.models import Alert, AlertAction, AlertStatus, TriggerType

NOW = datetime(2026, 3, 1, tzinfo=UTC)


@pytest.fixture
def config(tmp_path):
    return Config(
        hedera={"operator_id": "0.0.1234"},
        dispatch={"default_cooldown_seconds": 600},
        database={"path": str(tmp_path / "alerts.db")},
    )


@pytest.fixture
async def db(config):
    database = Database(config.database.path)
    await database.init()
    yield database
    await database.close()


def make_alert(alert_id: str, owner: str | None = None) -> Alert:
    return Alert(
        id=alert_id,
        owner=owner,
        source_account="0.0.1001",
        destination_account=None,
        amount=0.0,
        action=AlertAction.NOTIFY,
        trigger_type=TriggerType.PERCENT_RISE,
        trigger_value=5.0,
        baseline_price=0.08,
        created_at=NOW,
        updated_at=NOW,
    )


def test_parse_args_add():
    options = parse_args(
        ["add", "--account", "0.0.1", "--action", "sell", "--amount", "10", "--value", "7.5"]
    )
    assert options.command == "add"
    assert options.action == "sell"
    assert options.amount == 10
    assert options.value == 7.5
    assert options.trigger == "percent_drop"
    assert options.baseline is None


def test_parse_args_status_command():
    options = parse_args(["pause", "a1"])
    assert options.command == "pause"
    assert options.alert_id == "a1"


def test_format_alert():
    text = format_alert(make_alert("a1"))
    assert text.startswith("a1 [active] notify percent_rise 5%")
    assert "at 0.084" in text
    assert "last=never" in text


async def test_add_with_baseline_uses_default_cooldown(config, db, capsys):
    options = parse_args(
        [
            "add",
            "--account",
            "0.0.1001",
            "--action",
            "buy",
            "--amount",
            "100",
            "--value",
            "10",
            "--baseline",
            "0.08",
        ]
    )

    await run_command(options, config, db)

    alerts = await db.list_alerts()
    assert len(alerts) == 1
    assert alerts[0].cooldown_seconds == 600
    assert alerts[0].baseline_price == 0.08
    assert alerts[0].id in capsys.readouterr().out


async def test_list_filters_by_owner(config, db, capsys):
    await db.insert(make_alert("a1", owner="alice"))
    await db.insert(make_alert("a2", owner="bob"))

    await run_command(parse_args(["list", "--owner", "alice"]), config, db)

    out = capsys.readouterr().out
    assert "a1" in out
    assert "a2 " not in out
    assert "1 alert(s)" in out


async def test_status_commands(config, db):
    await db.insert(make_alert("a1"))

    await run_command(parse_args(["pause", "a1"]), config, db)
    assert (await db.get("a1")).status == AlertStatus.PAUSED

    await run_command(parse_args(["resume", "a1"]), config, db)
    assert (await db.get("a1")).status == AlertStatus.ACTIVE

    await run_command(parse_args(["cancel", "a1"]), config, db)
    assert (await db.get("a1")).status == AlertStatus.CANCELLED


async def test_delete_one_and_all(config, db):
    for alert_id in ("a1", "a2", "a3"):
        await db.insert(make_alert(alert_id))

    await run_command(parse_args(["delete", "a1"]), config, db)
    assert await db.get("a1") is None

    await run_command(parse_args(["delete", "--all"]), config, db)
    assert await db.list_alerts() == []
