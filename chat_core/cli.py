"""命令行入口：交互式 REPL、单次提问与批量文件模式。

    chat-core                      # 交互式，输入 exit 退出
    chat-core --prompt "Hello"     # 单次提问
    chat-core --batch prompts.txt  # 每行一个 prompt，并行提交
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO

from chat_core.agents.chat_session import ChatSession, SessionConfig, TurnResult
from chat_core.config.settings import settings
from chat_core.domain.exceptions import BusinessError
from chat_core.providers import create_transport
from chat_core.tasks import BatchConfig, BatchOutcome, run_batch


SEPARATOR = "-" * 61
EXIT_COMMANDS = {"exit", "quit"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chat-core", description="Chat with an OpenRouter model.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-p", "--prompt", help="send a single prompt and exit")
    mode.add_argument("-b", "--batch", type=Path, help="file with one prompt per line, sent in parallel")
    parser.add_argument("-m", "--model", help=f"model id or alias (default: {settings.default_model})")
    parser.add_argument("--system", help="system prompt")
    parser.add_argument("--no-stream", dest="stream", action="store_false", default=None,
                        help="wait for the whole reply instead of streaming")
    parser.add_argument("--max-concurrency", type=int, help="batch mode: requests in flight at once")
    parser.add_argument("--min-interval", type=float, help="minimum seconds between requests")
    return parser


def print_turn(result: TurnResult, out: TextIO, streamed: bool) -> None:
    if streamed:
        out.write("\n")
    elif result.response is not None:
        resp = result.response
        metadata = {
            "id": resp.id,
            "model": resp.model,
            "prompt_tokens": resp.usage.prompt_tokens,
            "completion_tokens": resp.usage.completion_tokens,
            "total_tokens": resp.usage.total_tokens,
        }
        out.write(f"\nMetadata: {json.dumps(metadata, indent=2)}\n")
        out.write(f"\nAI: {resp.message.content or 'No response content available.'}\n")
    out.write(SEPARATOR + "\n")
    out.flush()


def ask_and_print(session: ChatSession, prompt: str, out: TextIO) -> Optional[TurnResult]:
    """发送一轮并打印结果；业务错误只打印，不中断调用方的循环。"""

    streamed = session.config.stream
    on_text: Optional[Callable[[str], None]] = None
    if streamed:
        out.write("\nAI: ")
        out.flush()

        def on_text(text: str) -> None:
            out.write(text)
            out.flush()

    try:
        result = session.ask(prompt, on_text=on_text)
    except BusinessError as e:
        out.write(f"\nError: {e.message}\n")
        out.flush()
        return None
    print_turn(result, out, streamed)
    return result


def run_repl(session: ChatSession, input_fn: Callable[[str], str] = input, out: TextIO = sys.stdout) -> int:
    out.write("Welcome to the interactive AI assistant. Type 'exit' to quit.\n")
    out.write(SEPARATOR + "\n")
    while True:
        try:
            line = input_fn("You: ")
        except KeyboardInterrupt:
            out.write("\nCTRL-C\n")
            break
        except EOFError:
            out.write("\nCTRL-D\n")
            break
        if line.strip().lower() in EXIT_COMMANDS:
            out.write("Goodbye!\n")
            break
        if not line.strip():
            continue
        ask_and_print(session, line, out)
    return 0


def print_batch(outcomes: Sequence[BatchOutcome], out: TextIO) -> int:
    failed = 0
    for outcome in outcomes:
        out.write(f"[{outcome.index + 1}] {outcome.prompt}\n")
        if outcome.ok:
            out.write(f"AI: {outcome.reply}\n")
        else:
            failed += 1
            out.write(f"Error ({outcome.error_code}): {outcome.error}\n")
        out.write(SEPARATOR + "\n")
    out.write(f"{len(outcomes) - failed}/{len(outcomes)} succeeded\n")
    out.flush()
    return 1 if failed else 0


def read_prompts(path: Path) -> List[str]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def main(argv: Optional[Sequence[str]] = None, out: TextIO = sys.stdout) -> int:
    args = build_parser().parse_args(argv)
    transport = create_transport(settings, min_interval=args.min_interval)
    with transport:
        if args.batch is not None:
            config = BatchConfig.from_settings(
                settings,
                model=args.model,
                max_concurrency=args.max_concurrency,
                stream=args.stream,
                system_prompt=args.system,
            )
            try:
                prompts = read_prompts(args.batch)
            except OSError as e:
                out.write(f"Error: cannot read {args.batch}: {e}\n")
                return 2
            return print_batch(run_batch(prompts, transport, config), out)

        session_config = SessionConfig.from_settings(settings)
        if args.model:
            session_config.model = args.model
        if args.stream is not None:
            session_config.stream = args.stream
        if args.system:
            session_config.system_prompt = args.system
        session = ChatSession(transport, session_config)

        if args.prompt is not None:
            return 0 if ask_and_print(session, args.prompt, out) else 1
        return run_repl(session, out=out)


if __name__ == "__main__":
    sys.exit(main())
