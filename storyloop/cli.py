#!/usr/bin/env python3
"""storyloop CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from storyloop.lib.config import find_project_root, load_project_config
from storyloop.commands import log as cmd_log_module
from storyloop.commands import show as cmd_show_module
from storyloop.commands import update as cmd_update_module


def get_project_config(args):
    """Load project config from --root, or search upward from cwd."""
    if args.root:
        root = Path(args.root).resolve()
    else:
        root = find_project_root()
        if root is None:
            print("ERROR: No ledger found. Create prd.json or storyloop.env, or pass --root.")
            sys.exit(2)

    try:
        config = load_project_config(root)
    except (OSError, ValueError) as e:
        print(f"ERROR: Bad configuration: {e}")
        sys.exit(2)

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )
    return config


def cmd_next(args):
    return cmd_show_module.cmd_next(args, get_project_config(args))


def cmd_list(args):
    return cmd_show_module.cmd_list(args, get_project_config(args))


def cmd_status(args):
    return cmd_show_module.cmd_status(args, get_project_config(args))


def cmd_show(args):
    return cmd_show_module.cmd_show(args, get_project_config(args))


def cmd_complete(args):
    return cmd_update_module.cmd_complete(args, get_project_config(args))


def cmd_block(args):
    return cmd_update_module.cmd_block(args, get_project_config(args))


def cmd_unblock(args):
    return cmd_update_module.cmd_unblock(args, get_project_config(args))


def cmd_log(args):
    return cmd_log_module.cmd_log(args, get_project_config(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='storyloop', description='Story ledger CLI')
    parser.add_argument('--root', '-C', help='Project root (default: search upward from cwd)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # storyloop next
    p_next = subparsers.add_parser('next', help='Show the next story to work on')
    p_next.set_defaults(func=cmd_next)

    # storyloop list
    p_list = subparsers.add_parser('list', help='List stories')
    p_list.set_defaults(func=cmd_list)

    # storyloop status
    p_status = subparsers.add_parser('status', help='Show ledger progress')
    p_status.set_defaults(func=cmd_status)

    # storyloop show
    p_show = subparsers.add_parser('show', help='Show story details')
    p_show.add_argument('story', help='Story ID')
    p_show.set_defaults(func=cmd_show)

    # storyloop complete
    p_complete = subparsers.add_parser('complete', help='Mark a story complete')
    p_complete.add_argument('story', help='Story ID')
    p_complete.add_argument('--notes', '-n', help='Notes to keep on the story')
    p_complete.add_argument('--learnings', '-l', help='Learnings for the progress log')
    p_complete.set_defaults(func=cmd_complete)

    # storyloop block
    p_block = subparsers.add_parser('block', help='Mark a story blocked')
    p_block.add_argument('story', help='Story ID')
    p_block.add_argument('--reason', '-r', required=True, help='Why the story is blocked')
    p_block.set_defaults(func=cmd_block)

    # storyloop unblock
    p_unblock = subparsers.add_parser('unblock', help='Return a blocked story to pending')
    p_unblock.add_argument('story', help='Story ID')
    p_unblock.add_argument('--message', '-m', help='Note for the progress log')
    p_unblock.set_defaults(func=cmd_unblock)

    # storyloop log
    p_log = subparsers.add_parser('log', help='Show progress log')
    p_log.add_argument('story', nargs='?', help='Only show entries for this story')
    p_log.set_defaults(func=cmd_log)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
