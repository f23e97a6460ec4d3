import argparse
import asyncio
import json
import os
import sys
from typing import Any, List, Optional

from playshelf.core.library import Library
from playshelf.core.maintenance import cleanup_orphans, purge_broken_thumbnails, purge_thumbnails
from playshelf.models.category import CategoryItem


def _emit(value: Any) -> None:
    """Prints models / plain values as JSON on stdout."""
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json")
    elif isinstance(value, list):
        value = [v.model_dump(mode="json") if hasattr(v, "model_dump") else v for v in value]
    print(json.dumps(value, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="playshelf", description="Playshelf video library")
    parser.add_argument("--data-dir", help="Directory for the store and thumbnails (default ~/.playshelf)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("scan", help="List videos under a folder, newest first.")
    p.add_argument("root", nargs="?", help="Folder to scan (defaults to the last used folder)")
    p.add_argument("--no-recursive", action="store_true", help="Only direct children.")
    p.add_argument("--depth", type=int, default=None, help="Maximum folder depth.")
    p.add_argument("--meta", action="store_true", help="Also resolve duration and thumbnail.")

    p = sub.add_parser("folders", help="List subfolders of a folder.")
    p.add_argument("root")

    p = sub.add_parser("meta", help="Duration and thumbnail for one video.")
    p.add_argument("path")

    p = sub.add_parser("mark", help="Mark a video as watched now.")
    p.add_argument("path")

    p = sub.add_parser("watch", help="Add watched seconds to a video.")
    p.add_argument("path")
    p.add_argument("seconds", type=float)

    p = sub.add_parser("position", help="Store the resume position of a video.")
    p.add_argument("path")
    p.add_argument("seconds", type=float)

    p = sub.add_parser("stats", help="Watch statistics of one video.")
    p.add_argument("path")

    sub.add_parser("history", help="Watched videos, most recent first.")

    p = sub.add_parser("daily", help="Watched minutes per day.")
    p.add_argument("--days", type=int, default=30)

    p = sub.add_parser("insights", help="Summary over the watch history.")
    p.add_argument("--days", type=int, default=30)

    p = sub.add_parser("category", help="Manage categories.")
    p.add_argument("action", choices=["list", "create", "rename", "delete", "add", "remove"])
    p.add_argument("args", nargs="*", help="create NAME | rename ID NAME | delete ID | add/remove ID video|folder PATH...")

    p = sub.add_parser("settings", help="Show or change settings.")
    p.add_argument("--hover-previews", choices=["on", "off"])
    p.add_argument("--ffmpeg")
    p.add_argument("--ffprobe")

    sub.add_parser("tools", help="Check that ffmpeg and ffprobe can be run.")

    p = sub.add_parser("thumbs", help="Thumbnail cache maintenance.")
    p.add_argument("action", choices=["purge", "purge-broken", "cleanup"])
    p.add_argument("root", nargs="?", help="cleanup: keep thumbnails of videos under this folder")
    return parser


async def _run(lib: Library, args: argparse.Namespace) -> int:
    cmd = args.command

    if cmd == "scan":
        root = args.root or lib.get_last_folder()
        if not root:
            print("❌ No folder given and no last folder stored.", file=sys.stderr)
            return 2
        root = os.path.abspath(os.path.expanduser(root))
        videos = await lib.scan(root, recursive=not args.no_recursive, max_depth=args.depth)
        if args.meta:
            videos = list(await asyncio.gather(*(lib.hydrate(v) for v in videos)))
        lib.set_last_folder(root)
        _emit(videos)
    elif cmd == "folders":
        _emit(await lib.list_folders(os.path.abspath(args.root)))
    elif cmd == "meta":
        asset = await lib.get_meta(os.path.abspath(args.path))
        _emit({"duration": asset.duration, "thumb": asset.thumb_url})
    elif cmd == "mark":
        return 0 if lib.mark_watched(os.path.abspath(args.path)) else 1
    elif cmd == "watch":
        return 0 if lib.add_watch_time(os.path.abspath(args.path), args.seconds) else 1
    elif cmd == "position":
        return 0 if lib.set_last_position(os.path.abspath(args.path), args.seconds) else 1
    elif cmd == "stats":
        _emit(lib.get_stats(os.path.abspath(args.path)).model_dump(by_alias=True))
    elif cmd == "history":
        _emit(lib.get_history())
    elif cmd == "daily":
        totals = lib.get_daily_totals(args.days)
        _emit({"dates": totals.dates, "minutes": totals.minutes})
    elif cmd == "insights":
        _emit(await lib.get_insights(days=args.days))
    elif cmd == "category":
        return _category(lib, args.action, args.args)
    elif cmd == "settings":
        if args.hover_previews:
            lib.set_app_settings(enable_hover_previews=args.hover_previews == "on")
        if args.ffmpeg or args.ffprobe:
            lib.set_tool_paths(args.ffmpeg, args.ffprobe)
        _emit({
            **lib.get_app_settings().model_dump(by_alias=True),
            "lastFolder": lib.get_last_folder(),
        })
    elif cmd == "tools":
        status = await lib.check_tools()
        _emit(status)
        return 0 if status.ffmpeg_ok and status.ffprobe_ok else 1
    elif cmd == "thumbs":
        thumb_dir = lib.config.thumb_dir
        if args.action == "purge":
            purge_thumbnails(thumb_dir)
        elif args.action == "purge-broken":
            purge_broken_thumbnails(thumb_dir)
        else:
            if not args.root:
                print("❌ cleanup needs the library folder.", file=sys.stderr)
                return 2
            videos = await lib.scan(os.path.abspath(args.root), max_depth=64)
            cleanup_orphans(thumb_dir, [v.path for v in videos])
    return 0


def _category(lib: Library, action: str, params: List[str]) -> int:
    if action == "list":
        _emit(lib.get_categories())
        return 0
    if action == "create" and len(params) == 1:
        category = lib.create_category(params[0])
        if category is None:
            return 1
        _emit(category)
        return 0
    if action == "rename" and len(params) == 2:
        return 0 if lib.rename_category(params[0], params[1]) else 1
    if action == "delete" and len(params) == 1:
        return 0 if lib.delete_category(params[0]) else 1
    if action in ("add", "remove") and len(params) >= 3 and params[1] in ("video", "folder"):
        items = [CategoryItem(kind=params[1], path=os.path.abspath(p)) for p in params[2:]]
        if action == "add":
            return 0 if lib.add_to_category(params[0], items) else 1
        ok = all([lib.remove_from_category(params[0], item) for item in items])
        return 0 if ok else 1
    print(f"❌ Bad arguments for 'category {action}'.", file=sys.stderr)
    return 2


def run(args_list: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(args_list)
    lib = Library.open(args.data_dir)
    try:
        return asyncio.run(_run(lib, args))
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted.", file=sys.stderr)
        return 130
    finally:
        lib.close()


if __name__ == "__main__":
    sys.exit(run())
