import argparse
import logging
import sys
from typing import List, Optional

from arena import create_arena, destroy_arena
from config import ARENA_CAPACITY, setup_logging
from expression import ExpressionError, describe_error, format_ref, postfix_text, to_postfix, tokenize
from stack import format_stack
from token_buffer import destroy_token_buffer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="将中缀算术表达式转换为后缀表达式（逆波兰表示法）")
    parser.add_argument("expression", type=str, help="中缀表达式，例如 \"(2+3)*4\"，不能包含空格")
    parser.add_argument("--capacity", "-c", type=int, default=ARENA_CAPACITY,
                        help="每个节点池的容量，0 表示默认容量")
    parser.add_argument("--arenas", "-n", type=int, default=1, help="节点池数量")
    parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")
    return parser


def run(expression: str, capacity: int = 0, arena_count: int = 1) -> int:
    """
    转换表达式并打印结果，成功返回 0，失败返回 1
    """
    if arena_count < 1:
        print("节点池数量至少为 1", file=sys.stderr)
        return 1

    arenas = [create_arena(capacity) for _ in range(arena_count)]
    try:
        tokens = tokenize(expression, arenas)
        try:
            postfix = to_postfix(tokens)
        finally:
            destroy_token_buffer(tokens)
        for line in format_stack(postfix, format_ref):
            print(line)
        print(postfix_text(postfix))
        return 0
    except ExpressionError as e:
        logging.info(f"表达式 {expression!r} 处理失败: {e}")
        print(f"{expression}: {describe_error(expression, e)}", file=sys.stderr)
        return 1
    finally:
        for arena in arenas:
            destroy_arena(arena)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(None, "DEBUG" if args.verbose else "WARNING")
    if args.capacity < 0:
        print("节点池容量不能为负数", file=sys.stderr)
        return 1
    return run(args.expression, args.capacity, args.arenas)


if __name__ == "__main__":
    sys.exit(main())
