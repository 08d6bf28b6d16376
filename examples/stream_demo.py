"""Minimal console demonstration of a streaming Qianwen chat session."""

import sys

from qianwen_chat import StreamSinks, create_chat_session


def main() -> None:
    session = create_chat_session()

    def on_complete(text, error):
        if error is not None:
            print(f"\n[error] {error}", file=sys.stderr)
        else:
            print()

    sinks = StreamSinks(
        on_fragment=lambda t: print(t, end="", flush=True),
        on_complete=on_complete,
    )
    for question in sys.argv[1:] or ["你好，请介绍一下自己。"]:
        print("User:", question)
        print("Assistant: ", end="")
        session.send(question, sinks)


if __name__ == "__main__":
    main()
