"""CLI entrypoint for the QNAP FileStation client."""

import argparse
import logging
import os
import sys

from .api import FileStationClient
from .errors import FileStationError
from .models import ListKind, SortDirection, SortField

SORT_CHOICES = {
    "name": SortField.NAME,
    "size": SortField.SIZE,
    "mtime": SortField.MODIFIED,
    "owner": SortField.OWNER,
    "group": SortField.GROUP,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qnap-filestation", description="QNAP FileStation client")
    parser.add_argument("--url", default=os.environ.get("QNAP_URL"), help="NAS base URL (default: $QNAP_URL)")
    parser.add_argument("--user", default=os.environ.get("QNAP_USER"), help="Login user (default: $QNAP_USER)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("ls", help="List a folder")
    ls.add_argument("path")
    kind = ls.add_mutually_exclusive_group()
    kind.add_argument("--files", action="store_const", dest="kind", const=ListKind.FILE, help="Only files")
    kind.add_argument("--folders", action="store_const", dest="kind", const=ListKind.FOLDER, help="Only folders")
    ls.add_argument("--sort", choices=sorted(SORT_CHOICES), default="name")
    ls.add_argument("--desc", action="store_true", help="Sort descending")
    ls.add_argument("--limit", type=int, default=500)
    ls.add_argument("--pattern", help="Regular expression matched against names")
    ls.set_defaults(kind=ListKind.ALL)

    tree = sub.add_parser("tree", help="List sub-folders")
    tree.add_argument("path")

    exists = sub.add_parser("exists", help="Check whether an entry exists")
    exists.add_argument("path")
    exists.add_argument("name")

    mkdir = sub.add_parser("mkdir", help="Create a folder")
    mkdir.add_argument("path")
    mkdir.add_argument("name")

    rm = sub.add_parser("rm", help="Delete files or folders")
    rm.add_argument("path")
    rm.add_argument("names", nargs="+")

    mv = sub.add_parser("mv", help="Rename a file or folder")
    mv.add_argument("path")
    mv.add_argument("source_name")
    mv.add_argument("dest_name")

    du = sub.add_parser("du", help="Show the size of a file or folder")
    du.add_argument("path")
    du.add_argument("name")

    get = sub.add_parser("get", help="Download a file")
    get.add_argument("path")
    get.add_argument("name")
    get.add_argument("dest", nargs="?", help="Local destination (default: NAME)")

    put = sub.add_parser("put", help="Upload a file")
    put.add_argument("source")
    put.add_argument("dest_folder")
    put.add_argument("--as", dest="dest_name", help="Name to store the file under")

    return parser


def run(client: FileStationClient, args: argparse.Namespace) -> int:
    if args.command == "ls":
        direction = SortDirection.DESC if args.desc else SortDirection.ASC
        entries = client.list(
            args.path, args.kind, limit=args.limit, sort=SORT_CHOICES[args.sort],
            direction=direction, pattern=args.pattern,
        )
        for entry in entries:
            marker = "/" if entry.is_folder else ""
            modified = entry.modified.isoformat(sep=" ") if entry.modified else "-"
            print(f"{entry.size:>12}  {modified:19}  {entry.owner}:{entry.group}  {entry.name}{marker}")
    elif args.command == "tree":
        for node in client.tree(args.path):
            print(f"{node.text}\t{node.id}")
    elif args.command == "exists":
        found = client.exists(args.path, args.name)
        print("yes" if found else "no")
        return 0 if found else 1
    elif args.command == "mkdir":
        client.create_folder(args.path, args.name)
    elif args.command == "rm":
        client.delete(args.path, args.names)
    elif args.command == "mv":
        client.rename(args.path, args.source_name, args.dest_name)
    elif args.command == "du":
        info = client.get_size(args.path, args.name)
        print(f"{info.size} bytes ({info.mb:.2f} MB), {info.file_count} files, {info.folder_count} folders")
    elif args.command == "get":
        written = client.download(args.path, args.name, args.dest or args.name)
        print(f"{written} bytes")
    elif args.command == "put":
        client.upload(args.source, args.dest_folder, args.dest_name)
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
    # httpx logs request URLs, which carry the password and the sid
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    password = os.environ.get("QNAP_PASSWORD")
    if not args.user or password is None:
        print("Error: credentials required", file=sys.stderr)
        print("Set QNAP_USER and QNAP_PASSWORD environment variables", file=sys.stderr)
        return 1

    try:
        client = FileStationClient(args.url)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Set QNAP_URL environment variable or pass --url", file=sys.stderr)
        return 1

    with client:
        try:
            client.login(args.user, password)
            return run(client, args)
        except FileStationError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
