"""Reelsmith command-line interface.

Operator entry point for creating batches, retrying failed items,
managing topics and rotation counters, and inspecting upload slots.
Pipeline work itself runs in the Celery workers.

Usage:
    reelsmith init-db
    reelsmith create --count 5 --mode ai_images --auto-upload --upload-mode scheduled
    reelsmith retry <content_item_id>
    reelsmith topics add "Stoicism" --description "Ancient philosophy for modern life"
    reelsmith slots preview --count 10
    reelsmith publer accounts
"""

import argparse
import asyncio
import sys
import uuid
from datetime import date
from typing import Any

from dotenv import load_dotenv

from reelsmith.core.container import get_container
from reelsmith.core.database import close_db, init_db
from reelsmith.core.exceptions import MissingCredentialsError, ReelsmithError
from reelsmith.core.logging import get_logger, setup_logging
from reelsmith.infrastructure.publer import PublerClient
from reelsmith.models.content_item import RenderMode, UploadMode
from reelsmith.models.rotation_counter import ResourceClass

logger = get_logger(__name__)


# ============================================
# Commands
# ============================================


async def cmd_init_db(args: argparse.Namespace) -> None:
    await init_db()
    print("Database tables created")


async def cmd_create(args: argparse.Namespace) -> None:
    orchestrator = get_container().services.pipeline_orchestrator()
    items = await orchestrator.create_content_items(
        args.count,
        render_mode=RenderMode(args.mode),
        auto_upload=args.auto_upload,
        upload_mode=UploadMode(args.upload_mode),
    )
    for item in items:
        print(f"{item.id}  {item.render_mode}  background={item.background_path or '-'}")
    print(f"Created {len(items)} content item(s)")


async def cmd_status(args: argparse.Namespace) -> None:
    orchestrator = get_container().services.pipeline_orchestrator()
    item = await orchestrator.get_content_item(args.content_item_id)
    print(f"Status:      {item.status}")
    print(f"Mode:        {item.render_mode}")
    print(f"Title:       {item.title or '-'}")
    if item.failed_step:
        print(f"Failed step: {item.failed_step}")
        print(f"Error:       {item.error_message}")
    if item.output_path:
        print(f"Output:      {item.output_path}")
    if item.upload_error:
        print(f"Upload err:  {item.upload_error}")


async def cmd_retry(args: argparse.Namespace) -> None:
    orchestrator = get_container().services.pipeline_orchestrator()
    step = await orchestrator.retry_content_item(args.content_item_id)
    print(f"Resuming {args.content_item_id} at {step.value}")


async def cmd_retry_upload(args: argparse.Namespace) -> None:
    orchestrator = get_container().services.pipeline_orchestrator()
    await orchestrator.retry_upload(args.content_item_id)
    print(f"Upload re-queued for {args.content_item_id}")


async def cmd_rotation(args: argparse.Namespace) -> None:
    ledger = get_container().services.rotation_ledger()
    if args.rotation_command == "reset":
        if args.resource == "all":
            await ledger.reset_all()
        else:
            await ledger.reset(ResourceClass(args.resource))
        print(f"Reset {args.resource}")
        return

    counters = await ledger.counters()
    for resource in ResourceClass:
        print(f"{resource.value:<14} {counters.get(resource)}")


async def cmd_topics(args: argparse.Namespace) -> None:
    rotator = get_container().services.topic_rotator()
    if args.topics_command == "add":
        topic = await rotator.add_topic(args.name, args.description)
        print(f"Added topic {topic.id}  {topic.name}")
    elif args.topics_command == "list":
        for topic in await rotator.list_topics(active_only=args.active):
            marker = "*" if topic.is_active else " "
            print(f"{marker} {topic.id}  {topic.name}  used={topic.usage_count}")
    elif args.topics_command == "use-next":
        topic = await rotator.use_topic_next(args.topic_id)
        print(f"Next topic: {topic.name}")
    elif args.topics_command in ("enable", "disable"):
        topic = await rotator.set_active(args.topic_id, args.topics_command == "enable")
        print(f"{topic.name}: active={topic.is_active}")


async def cmd_slots(args: argparse.Namespace) -> None:
    scheduler = get_container().services.slot_scheduler()
    if args.slots_command == "preview":
        for slot in await scheduler.preview_upcoming_slots(args.count):
            print(f"{slot.date.isoformat()}  slot {slot.slot}  {slot.display_time}")
        return

    for info in await scheduler.slots_for_date(args.date):
        if info.schedule is not None:
            state = f"{info.schedule.status} ({info.schedule.content_item_id})"
        elif info.is_past:
            state = "past"
        else:
            state = "free"
        print(f"{info.slot:>2}  {info.time:>8}  {state}")


async def cmd_cancel(args: argparse.Namespace) -> None:
    container = get_container()
    scheduler = container.services.slot_scheduler()
    try:
        credentials = await container.services.publer_settings().resolve()
    except MissingCredentialsError:
        await scheduler.cancel(args.schedule_id)
    else:
        async with PublerClient(
            credentials.api_key,
            credentials.workspace_id,
            container.configs.publish_config(),
        ) as publer:
            await scheduler.cancel(args.schedule_id, publer=publer)
    print(f"Cancelled schedule {args.schedule_id}")


async def cmd_publer(args: argparse.Namespace) -> None:
    container = get_container()
    credentials = await container.services.publer_settings().resolve()
    async with PublerClient(
        credentials.api_key,
        credentials.workspace_id,
        container.configs.publish_config(),
    ) as publer:
        if args.publer_command == "test":
            ok = await publer.test_connection()
            print("Publer connection OK" if ok else "Publer connection failed")
            return
        for account in await publer.list_accounts(args.provider):
            print(f"{account.provider:<10} {account.id}  {account.name}")


COMMANDS: dict[str, Any] = {
    "init-db": cmd_init_db,
    "create": cmd_create,
    "status": cmd_status,
    "retry": cmd_retry,
    "retry-upload": cmd_retry_upload,
    "rotation": cmd_rotation,
    "topics": cmd_topics,
    "slots": cmd_slots,
    "cancel": cmd_cancel,
    "publer": cmd_publer,
}


# ============================================
# Parser
# ============================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with every subcommand."""
    parser = argparse.ArgumentParser(
        prog="reelsmith",
        description="Short-form video generation pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables (development)")

    create = sub.add_parser("create", help="Create a batch of content items")
    create.add_argument("--count", "-n", type=int, default=1, help="Items to create (1-50)")
    create.add_argument(
        "--mode",
        choices=[m.value for m in RenderMode],
        default=RenderMode.STATIC_BACKGROUND.value,
        help="Render mode (default: static_background)",
    )
    create.add_argument("--auto-upload", action="store_true", help="Publish when rendered")
    create.add_argument(
        "--upload-mode",
        choices=[m.value for m in UploadMode],
        default=UploadMode.NONE.value,
        help="Publishing mode (default: none)",
    )

    for name, help_text in (
        ("status", "Show a content item"),
        ("retry", "Resume a failed content item"),
        ("retry-upload", "Re-run the upload of a completed item"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("content_item_id", type=uuid.UUID)

    rotation = sub.add_parser("rotation", help="Inspect or reset rotation counters")
    rotation_sub = rotation.add_subparsers(dest="rotation_command", required=True)
    rotation_sub.add_parser("counters", help="Show counter values")
    reset = rotation_sub.add_parser("reset", help="Reset one counter or all")
    reset.add_argument("resource", choices=[r.value for r in ResourceClass] + ["all"])

    topics = sub.add_parser("topics", help="Manage script topics")
    topics_sub = topics.add_subparsers(dest="topics_command", required=True)
    add = topics_sub.add_parser("add", help="Add a topic")
    add.add_argument("name")
    add.add_argument("--description", "-d", default="")
    listing = topics_sub.add_parser("list", help="List topics in selection order")
    listing.add_argument("--active", action="store_true", help="Only active topics")
    for name, help_text in (
        ("use-next", "Make a topic the next one selected"),
        ("enable", "Activate a topic"),
        ("disable", "Deactivate a topic"),
    ):
        cmd = topics_sub.add_parser(name, help=help_text)
        cmd.add_argument("topic_id", type=uuid.UUID)

    slots = sub.add_parser("slots", help="Inspect upload slots")
    slots_sub = slots.add_subparsers(dest="slots_command", required=True)
    preview = slots_sub.add_parser("preview", help="Next free slots, without reserving")
    preview.add_argument("--count", "-n", type=int, default=5)
    day = slots_sub.add_parser("date", help="All slots of one day")
    day.add_argument("date", type=date.fromisoformat, help="YYYY-MM-DD")

    cancel = sub.add_parser("cancel", help="Cancel a scheduled upload")
    cancel.add_argument("schedule_id", type=uuid.UUID)

    publer = sub.add_parser("publer", help="Publer account utilities")
    publer_sub = publer.add_subparsers(dest="publer_command", required=True)
    publer_sub.add_parser("test", help="Check the API key and workspace")
    accounts = publer_sub.add_parser("accounts", help="List connected accounts")
    accounts.add_argument("--provider", default=None, help="Filter by provider")

    return parser


async def run(args: argparse.Namespace) -> None:
    try:
        await COMMANDS[args.command](args)
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    load_dotenv()
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Cancelled by user")
        sys.exit(1)
    except (ReelsmithError, ValueError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
