"""
Alert 管理

用法:
    python -m signal_relay.scripts.manage_alerts add --account 0.0.1234 --action buy \\
        --amount 100 --trigger percent_drop --value 10
    python -m signal_relay.scripts.manage_alerts list --owner 0xabc
    python -m signal_relay.scripts.manage_alerts show <alert_id>
    python -m signal_relay.scripts.manage_alerts pause <alert_id>
    python -m signal_relay.scripts.manage_alerts delete --all
"""

import argparse
import asyncio
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from signal_relay.alert.factory import create_alert
from signal_relay.alert.trigger import threshold_price
from signal_relay.config import Config, load_config
from signal_relay.main import LOG_FORMAT, build_price_source
from signal_relay.storage.database import Database
from signal_relay.storage.models import Alert, AlertAction, AlertStatus, TriggerType

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

STATUS_COMMANDS = {
    "pause": AlertStatus.PAUSED,
    "resume": AlertStatus.ACTIVE,
    "cancel": AlertStatus.CANCELLED,
    "complete": AlertStatus.COMPLETED,
}


def parse_args(args: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="管理价格 alert")
    parser.add_argument("--config", type=str, default="config.yaml", help="配置文件路径")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="创建 alert")
    add.add_argument("--account", required=True, help="source account")
    add.add_argument("--action", choices=[a.value for a in AlertAction], default="buy")
    add.add_argument("--amount", type=float, default=0)
    add.add_argument("--trigger", choices=[t.value for t in TriggerType], default="percent_drop")
    add.add_argument("--value", type=float, required=True, help="触发百分比")
    add.add_argument("--baseline", type=float, default=None, help="基准价 (默认: 当前价)")
    add.add_argument("--cooldown", type=int, default=None, help="冷却秒数")
    add.add_argument("--owner", default=None)
    add.add_argument("--to-account", default=None)

    lst = sub.add_parser("list", help="列出 alert")
    lst.add_argument("--owner", default=None)

    show = sub.add_parser("show", help="查看 alert")
    show.add_argument("alert_id")

    for name in STATUS_COMMANDS:
        cmd = sub.add_parser(name, help=f"{name} alert")
        cmd.add_argument("alert_id")

    delete = sub.add_parser("delete", help="删除 alert")
    delete.add_argument("alert_id", nargs="?", default=None)
    delete.add_argument("--all", action="store_true", help="删除全部")

    return parser.parse_args(args)


def format_alert(alert: Alert) -> str:
    trigger_at = threshold_price(alert.trigger_type, alert.trigger_value, alert.baseline_price)
    last = alert.last_notified_at.isoformat() if alert.last_notified_at else "never"
    amount = f" {alert.amount:g}" if alert.action != AlertAction.NOTIFY else ""
    return (
        f"{alert.id} [{alert.status.value}] {alert.action.value}{amount} "
        f"{alert.trigger_type.value} {alert.trigger_value:g}% "
        f"(base {alert.baseline_price:.6g}, at {trigger_at:.6g}) "
        f"topic={alert.topic_id or '-'} seq={alert.last_sequence or '-'} last={last}"
    )


async def run_command(options: argparse.Namespace, config: Config, db: Database) -> None:
    now = datetime.now(UTC)

    if options.command == "add":
        price_source = None
        if options.baseline is None:
            price_source = build_price_source(config.price)
            await price_source.init()
        try:
            alert = await create_alert(
                db,
                price_source,
                symbol=config.symbol,
                source_account=options.account,
                action=options.action,
                trigger_type=options.trigger,
                trigger_value=options.value,
                amount=options.amount,
                baseline_price=options.baseline,
                owner=options.owner,
                destination_account=options.to_account,
                cooldown_seconds=(
                    options.cooldown
                    if options.cooldown is not None
                    else config.dispatch.default_cooldown_seconds
                ),
                now=now,
            )
        finally:
            if price_source:
                await price_source.close()
        print(format_alert(alert))

    elif options.command == "list":
        alerts = await db.list_alerts(options.owner)
        for alert in alerts:
            print(format_alert(alert))
        print(f"{len(alerts)} alert(s)")

    elif options.command == "show":
        alert = await db.get(options.alert_id)
        print(format_alert(alert) if alert else f"Alert {options.alert_id} not found")

    elif options.command in STATUS_COMMANDS:
        status = STATUS_COMMANDS[options.command]
        if await db.set_status(options.alert_id, status, now):
            logger.info(f"Alert {options.alert_id} -> {status.value}")
        else:
            logger.warning(f"Alert {options.alert_id} not found")

    elif options.command == "delete":
        if options.all:
            count = await db.delete_all()
            logger.info(f"Deleted {count} alert(s)")
        elif options.alert_id:
            if await db.delete(options.alert_id):
                logger.info(f"Deleted alert {options.alert_id}")
            else:
                logger.warning(f"Alert {options.alert_id} not found")
        else:
            logger.error("Give an alert id or --all")


async def main(args: Sequence[str] | None = None) -> None:
    options = parse_args(args)
    config = load_config(Path(options.config))

    Path(config.database.path).parent.mkdir(parents=True, exist_ok=True)
    db = Database(config.database.path)
    await db.init()
    try:
        await run_command(options, config, db)
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main())
