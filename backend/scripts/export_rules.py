#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional, Tuple

SCRIPT_DIR = os.path.abspath(os.path.dirname(__file__))
BACKEND_DIR = os.path.abspath(os.path.join(SCRIPT_DIR, ".."))

sys.path.append(BACKEND_DIR)

from badge_canvas.converter import canvas_to_rule
from badge_canvas.operators import lint_rule
from badge_canvas.rule_validation import validate_rule
from badge_canvas.serializer import serialize_rule
from badge_canvas.template_loader import TEMPLATES_DIR, TemplateLoader


def _render_template(template_id: str, loader: TemplateLoader) -> Tuple[List[str], bool]:
    template = loader.get(template_id)
    rule = canvas_to_rule(
        template.nodes,
        template.edges,
        rule_id=template.id,
        rule_name=template.name,
        description=template.description,
    )
    check = validate_rule(rule)
    warnings = lint_rule(rule)

    lines = [f"## {template.id}", "", "```json", serialize_rule(rule), "```"]
    lines.append(f"- valid: {check.valid}")
    for error in check.errors:
        lines.append(f"- error: {error}")
    for warning in warnings:
        lines.append(f"- warning: {warning}")
    lines.append("")
    return lines, check.valid


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Convert canvas templates into rule definitions and report problems.",
    )
    parser.add_argument("--templates-dir", default=TEMPLATES_DIR)
    parser.add_argument(
        "--template",
        action="append",
        default=[],
        help="Template id to export. Repeat to export several; defaults to all.",
    )
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    loader = TemplateLoader(args.templates_dir)
    templates = loader.load_all()

    selected = args.template or sorted(templates.keys())
    missing = [template_id for template_id in selected if template_id not in templates]
    if missing:
        print(f"Unknown template(s): {', '.join(missing)}", file=sys.stderr)
        return 2

    lines = ["# Rule Export", ""]
    any_invalid = False
    for template_id in selected:
        section, valid = _render_template(template_id, loader)
        lines += section
        any_invalid = any_invalid or not valid
    print("\n".join(lines))
    return 1 if any_invalid else 0


if __name__ == "__main__":
    sys.exit(main())
