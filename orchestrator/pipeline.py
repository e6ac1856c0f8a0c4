"""Automation Pipeline - end-to-end orchestrator for flowsmith.

The pipeline:
1. Feeds each message through the conversation router (intent, requirement
   extraction, phase transitions)
2. Synthesizes a blueprint from the accumulated requirements
3. Compiles the blueprint into n8n workflow graphs
4. Writes the blueprint, graphs and a run summary to the output directory
"""

import json
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from blueprint import BlueprintSynthesizer, TimeSavingsEstimator
from builder import GraphBuilder
from builder.serializer import graph_to_dict, serialize
from config import settings
from contracts import (
    Blueprint,
    BlueprintConfig,
    ConversationContext,
    GraphOptions,
    WorkflowGraph,
)
from errors import FlowsmithError, PreconditionError, require_list
from librarian import TemplateStore, load_default_store
from router import ConversationRouter, RequirementClassifier, assess_completeness, normalize_requirements


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.casefold()).strip("-") or "graph"


class AutomationPipeline:
    """Runs a message feed through classification, synthesis and compilation."""

    def __init__(
        self,
        store: TemplateStore,
        classifier: Optional[RequirementClassifier] = None,
        synthesizer: Optional[BlueprintSynthesizer] = None,
        builder: Optional[GraphBuilder] = None,
        output_dir: Optional[str] = None,
    ):
        """Initialize the pipeline.

        Args:
            store: Template store used for related templates and recommendations.
            classifier: Requirement classifier. A default one is created if omitted.
            synthesizer: Blueprint synthesizer. A default one is created if omitted.
            builder: Graph builder. A default one is created if omitted.
            output_dir: Directory for run artifacts. Defaults to settings.output_dir.
        """
        self.store = store
        self.classifier = classifier or RequirementClassifier()
        self.router = ConversationRouter(
            store,
            classifier=self.classifier,
            related_limit=settings.recommendation_display_limit,
        )
        self.synthesizer = synthesizer or BlueprintSynthesizer()
        self.builder = builder or GraphBuilder()
        self.output_dir = Path(output_dir) if output_dir else settings.get_output_path()

        self._current_run_id: Optional[str] = None
        self._run_started: Optional[datetime] = None

    def run(
        self,
        messages: Any,
        config: Optional[BlueprintConfig] = None,
        options: Optional[GraphOptions] = None,
        save: bool = True,
    ) -> Dict[str, Any]:
        """Execute a complete run.

        Args:
            messages: List of plain-text messages and/or ``{category?, text}``
                records. Records with an explicit category are added to the
                context as given before their text is routed.
            config: Blueprint configuration.
            options: Graph compile options. The builder's defaults when omitted.
            save: Write artifacts under ``<output_dir>/<run_id>/``.

        Returns:
            Result dictionary (run_id, status, phase, completeness, blueprint,
            graphs, recommendations, output_path). On a FlowsmithError the
            dictionary has status "error" instead.
        """
        self._run_started = datetime.now()
        self._current_run_id = (
            f"run_{self._run_started.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}"
        )

        try:
            context = self._converse(messages)
            logger.info(
                f"Conversation ended in {context.phase.value} phase with "
                f"{len(context.requirements)} requirement(s)"
            )

            blueprint = self.synthesizer.generate(context.requirements, config)
            graphs = self.builder.compile(blueprint, context.requirements, options)
            self.router.mark_implementation(context)

            recommendations = self.router.recommended_templates(
                context, limit=settings.recommendation_display_limit
            )
            result = self._finalize_run(context, blueprint, graphs, recommendations)
            if save:
                result["output_path"] = str(self._save_artifacts(result, blueprint, graphs))
            return result

        except FlowsmithError as e:
            logger.error(f"Run {self._current_run_id} failed: {e}")
            return self._handle_error(e)

    def _converse(self, messages: Any) -> ConversationContext:
        context = ConversationContext()
        for index, item in enumerate(require_list(messages, "messages")):
            if isinstance(item, str):
                text = item
            elif isinstance(item, dict):
                text = item.get("text", item.get("answer"))
                if not isinstance(text, str) or not text.strip():
                    logger.warning(f"Skipping message #{index}: missing text")
                    continue
                if item.get("category") is not None:
                    context.add_requirements(normalize_requirements([item], self.classifier.id_factory))
            else:
                raise PreconditionError(
                    f"message #{index} must be a string or record, got {type(item).__name__}"
                )
            if not text.strip():
                continue

            outcome = self.router.handle(text, context)
            if outcome.related_templates:
                logger.debug(f"Related templates: {[t.id for t in outcome.related_templates]}")
        return context

    def _finalize_run(
        self,
        context: ConversationContext,
        blueprint: Blueprint,
        graphs: List[WorkflowGraph],
        recommendations: List[Any],
    ) -> Dict[str, Any]:
        run_end = datetime.now()
        duration = (run_end - self._run_started).total_seconds()
        return {
            "run_id": self._current_run_id,
            "status": "completed",
            "phase": context.phase.value,
            "completeness": assess_completeness(context.requirements),
            "requirements": [r.model_dump(mode="json") for r in context.requirements],
            "requirements_summary": self.router.summarize_requirements(context),
            "blueprint": blueprint.model_dump(mode="json"),
            "graphs": [graph_to_dict(g) for g in graphs],
            "recommendations": [{"id": t.id, "name": t.name} for t in recommendations],
            "output_path": None,
            "started_at": self._run_started.isoformat(),
            "completed_at": run_end.isoformat(),
            "duration_seconds": round(duration, 2),
        }

    def _save_artifacts(
        self,
        result: Dict[str, Any],
        blueprint: Blueprint,
        graphs: List[WorkflowGraph],
    ) -> Path:
        """Write blueprint, graphs and run summary; return the run directory."""
        output_path = self.output_dir / self._current_run_id
        output_path.mkdir(parents=True, exist_ok=True)

        (output_path / "blueprint.json").write_text(blueprint.model_dump_json(indent=2))
        (output_path / "blueprint.md").write_text(blueprint.to_markdown())

        graph_files = []
        for n, graph in enumerate(graphs, start=1):
            path = output_path / f"{n}_{slugify(graph.name)}.json"
            path.write_text(serialize(graph))
            graph_files.append(path.name)

        summary = {
            "run_id": result["run_id"],
            "status": result["status"],
            "phase": result["phase"],
            "completeness": result["completeness"],
            "blueprint_title": blueprint.title,
            "three_year_roi": blueprint.estimated_roi,
            "requirement_count": len(result["requirements"]),
            "graph_files": graph_files,
            "started_at": result["started_at"],
            "completed_at": result["completed_at"],
            "duration_seconds": result["duration_seconds"],
        }
        (output_path / "run_summary.json").write_text(json.dumps(summary, indent=2))
        logger.info(f"Saved run artifacts to {output_path}")
        return output_path

    def _handle_error(self, error: Exception) -> Dict[str, Any]:
        run_end = datetime.now()
        duration = (run_end - self._run_started).total_seconds() if self._run_started else 0

        return {
            "run_id": self._current_run_id,
            "status": "error",
            "error": str(error),
            "error_type": type(error).__name__,
            "started_at": self._run_started.isoformat() if self._run_started else None,
            "completed_at": run_end.isoformat(),
            "duration_seconds": round(duration, 2),
        }


def run_pipeline(
    messages: Any,
    config: Optional[BlueprintConfig] = None,
    options: Optional[GraphOptions] = None,
    output_dir: Optional[str] = None,
    templates_dir: Optional[str] = None,
    estimator: Optional[TimeSavingsEstimator] = None,
    save: bool = True,
) -> Dict[str, Any]:
    """Convenience function to run flowsmith end to end.

    Args:
        messages: Plain-text messages and/or ``{category?, text}`` records.
        config: Blueprint configuration.
        options: Graph compile options.
        output_dir: Directory for run artifacts.
        templates_dir: Extra template directory merged after the built-in catalog.
        estimator: Time-savings estimator for the ROI projection.
        save: Write artifacts to disk.

    Returns:
        Run results dictionary
    """
    pipeline = AutomationPipeline(
        store=load_default_store(templates_dir or settings.get_templates_path()),
        synthesizer=BlueprintSynthesizer(estimator=estimator),
        output_dir=output_dir,
    )
    return pipeline.run(messages, config=config, options=options, save=save)
