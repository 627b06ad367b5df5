import argparse
import sys
import os
import asyncio
import logging
import socket

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from core.config import get_settings
from core.languages import AUTO, LANGUAGES, TARGET_LANGUAGES
from core.client_controller import TranslationApiClient, TranslationController

logger = logging.getLogger("Main")


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
    )


def get_free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('', 0))
        return s.getsockname()[1]


def render_cards(controller: TranslationController) -> str:
    lines = []
    for code, card in controller.state.cards.items():
        lang = LANGUAGES.get(code, {"name": code, "flag": ""})
        lines.append(f"{lang['flag']} {lang['name']:<10} [{card.display_state.value}] {card.text}")
    return "\n".join(lines)


async def run_translate(text: str, source_lang: str, api_url: str) -> TranslationController:
    controller = TranslationController(TranslationApiClient(api_url))
    controller.set_source_language(source_lang)
    controller.state.source_text = text
    await controller.translate_now()
    await controller.wait_idle()
    return controller


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Translation relay server and CLI client")
    parser.add_argument("--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the relay server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    translate = sub.add_parser("translate", help="Translate text through a running relay")
    translate.add_argument("text")
    translate.add_argument("--source-lang", default=AUTO, choices=(AUTO,) + TARGET_LANGUAGES)
    translate.add_argument("--api-url", default=None)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.verbose or settings.log_verbose)

    if args.command == "translate":
        api_url = args.api_url or settings.translate_api_url
        controller = asyncio.run(run_translate(args.text, args.source_lang, api_url))
        print(render_cards(controller))
        return 0

    # Default: serve
    host = getattr(args, "host", None) or settings.host
    port = getattr(args, "port", None)
    if port is None:
        port = settings.port
    if port <= 0:
        port = get_free_port()
        logger.info(f"Allocated port: {port}")

    from core.api_server import run_api_server
    run_api_server(host, port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
