import argparse
import json
import logging
import sys
from concurrent.futures import CancelledError

from seoaudit import config
from seoaudit.container import Container
from seoaudit.domain.check_result import CheckResult
from seoaudit.exceptions import SeoAuditError


def _to_json(value):
    if isinstance(value, CheckResult):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl a site and print an SEO report as JSON.")
    parser.add_argument("url", help="site to audit")
    parser.add_argument("--max-depth", type=int, help="crawl depth (seed is 1, 0 = unlimited)")
    parser.add_argument("--options", help="YAML file with engine options")
    parser.add_argument("--no-robots", action="store_true", help="ignore robots.txt while crawling")
    parser.add_argument("--analyze", nargs="+", metavar="PAGE_URL",
                        help="skip the crawl and analyze these pages only")
    parser.add_argument("--log-level", default=config.log_level(), help="logging level (default: %(default)s)")
    return parser


def main(argv=None, container=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    container = container or Container()

    try:
        overrides = container.options_store().load(args.options) if args.options else {}
        if args.max_depth is not None:
            overrides["max_depth"] = args.max_depth
        if args.no_robots:
            overrides["respect_robots_txt"] = False
        options = container.default_options().merged(overrides)
        engine = container.engine(args.url, options=options)
    except SeoAuditError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    engine.on("add", lambda url: print(f"add {url}", file=sys.stderr))
    engine.on("ignore", lambda url, reason: print(f"ignore {url} ({reason})", file=sys.stderr))
    engine.on("error", lambda ev: print(f"error {ev.code} {ev.url}: {ev.message}", file=sys.stderr))

    try:
        if args.analyze:
            report = engine.analyze(args.analyze)
        else:
            report = engine.start().result()
    except KeyboardInterrupt:
        engine.stop()
        return 130
    except CancelledError:
        return 130
    except SeoAuditError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        engine.close()

    json.dump(report, sys.stdout, default=_to_json, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == '__main__':
    sys.exit(main())
