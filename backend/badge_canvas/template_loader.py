import logging
import os
from typing import Dict, List, Optional

import yaml

from .connections import validate_connection
from .models import CanvasTemplate, Connection, Edge

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")


class TemplateLoader:
    def __init__(self, templates_dir: str = TEMPLATES_DIR):
        self.templates_dir = templates_dir
        self.templates: Dict[str, CanvasTemplate] = {}

    def load_all(self) -> Dict[str, CanvasTemplate]:
        # Reset state to allow for reloads
        self.templates = {}

        for root, _, files in sorted(os.walk(self.templates_dir)):
            for file in sorted(files):
                if file.endswith(".yaml") or file.endswith(".yml"):
                    self._load_template(os.path.join(root, file))
        return self.templates

    def get(self, template_id: str) -> Optional[CanvasTemplate]:
        return self.templates.get(template_id)

    def _load_template(self, template_path: str):
        with open(template_path, "r") as f:
            data = yaml.safe_load(f)
        if not data:
            return

        template = CanvasTemplate(**data)
        if template.id in self.templates:
            raise ValueError(f"Duplicate template ID: {template.id}")
        self._validate_graph(template)
        self.templates[template.id] = template
        logger.debug(
            "Loaded template %s from %s (%d nodes, %d edges)",
            template.id, template_path, len(template.nodes), len(template.edges),
        )

    def _validate_graph(self, template: CanvasTemplate):
        node_ids = set()
        for node in template.nodes:
            if node.id in node_ids:
                raise ValueError(f"Duplicate node ID in template {template.id}: {node.id}")
            node_ids.add(node.id)

        # Template files never went through the editor, so replay every edge
        # through the live connection check in file order.
        accepted: List[Edge] = []
        for edge in template.edges:
            if edge.source not in node_ids:
                raise ValueError(f"Edge source not found in template {template.id}: {edge.source}")
            if edge.target not in node_ids:
                raise ValueError(f"Edge target not found in template {template.id}: {edge.target}")
            check = validate_connection(
                Connection(source=edge.source, target=edge.target), template.nodes, accepted
            )
            if not check.valid:
                raise ValueError(
                    f"Invalid edge {edge.source} -> {edge.target} in template {template.id}: {check.reason}"
                )
            accepted.append(edge)
