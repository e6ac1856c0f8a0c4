"""Tests for compiling blueprints into n8n workflow graphs."""

import json

import pytest

from contracts import Edge, GraphOptions
from builder import GraphBuilder, NodeFactory, determine_trigger, validate_structure
from errors import PreconditionError


def compile_for(synthesizer, builder, requirements, options=None):
    blueprint = synthesizer.generate(requirements)
    return builder.compile(blueprint, requirements, options)


def as_requirements(*texts):
    return [{"category": "business-process", "text": t} for t in texts]


def chain(graph):
    """Main-path node names following the trigger's edges."""
    names = [graph.trigger().name]
    while graph.connections.get(names[-1]):
        names.append(graph.connections[names[-1]][0].node)
    return names


class TestMainGraph:
    """Test the main workflow chain."""

    def test_ecommerce_reference(self, synthesizer, builder, ecommerce_requirements):
        """Test the basic e-commerce graph end to end."""
        graphs = compile_for(synthesizer, builder, ecommerce_requirements)

        assert len(graphs) == 1
        main = graphs[0]
        assert main.name == "Ecommerce Automation System - Simple Implementation - Main Workflow"
        assert main.node_names() == ["Webhook Trigger", "Process Data", "API Integration", "Send Notification"]
        assert main.node_types() == [
            "n8n-nodes-base.webhook",
            "n8n-nodes-base.function",
            "n8n-nodes-base.httpRequest",
            "n8n-nodes-base.emailSend",
        ]
        assert chain(main) == main.node_names()
        assert main.edge_count() == 3
        assert main.active is False
        assert main.settings == {"executionOrder": "v1"}
        assert main.tags == ["automation", "flowsmith", "ecommerce"]
        assert validate_structure(main) == []

    def test_layout_and_ids(self, synthesizer, builder, ecommerce_requirements):
        """Test node ids count up and nodes step right from (300, 300)."""
        main = compile_for(synthesizer, builder, ecommerce_requirements)[0]
        assert [n.id for n in main.nodes] == ["node_1", "node_2", "node_3", "node_4"]
        assert [n.position for n in main.nodes] == [(300, 300), (700, 300), (1100, 300), (1500, 300)]

    def test_empty_requirements(self, synthesizer, builder):
        """Test an empty feed still compiles a manual chain."""
        graphs = compile_for(synthesizer, builder, [])
        assert len(graphs) == 1
        assert graphs[0].node_names() == ["Manual Trigger", "Process Data", "API Integration", "Send Notification"]
        assert graphs[0].tags == ["automation", "flowsmith"]

    def test_standard_options(self, synthesizer, builder, ecommerce_requirements):
        """Test validation, retries, logging and the error side path."""
        graphs = compile_for(synthesizer, builder, ecommerce_requirements, GraphOptions.standard())
        main = graphs[0]

        assert chain(main) == [
            "Webhook Trigger",
            "Input Validation",
            "Process Data",
            "API Integration",
            "Send Notification",
        ]
        api = main.get_node("API Integration")
        assert api.parameters["retryOnFail"] is True
        assert api.parameters["maxTries"] == 3
        assert main.settings == {"executionOrder": "v1", "saveExecutionProgress": True}
        assert "errorWorkflow" not in main.settings
        assert main.meta == {"errorPath": ["Error Handler"]}
        assert main.connections["Error Handler"] == [Edge(node="Error Notification")]
        assert main.inbound_count("Error Handler") == 0
        assert main.get_node("Error Handler").position == (2300, 600)
        assert main.get_node("Error Notification").position == (2300, 800)
        assert validate_structure(main) == []
        assert len(graphs) == 2

    def test_ai_processing_node(self, synthesizer, builder):
        """Test an AI component compiles to an OpenAI node."""
        requirements = as_requirements("use ai to classify support tickets")
        main = compile_for(synthesizer, builder, requirements)[0]

        assert main.node_names() == ["Manual Trigger", "AI Processing", "API Integration", "Send Notification"]
        ai = main.get_node("AI Processing")
        assert ai.type == "n8n-nodes-base.openAi"
        assert ai.parameters["resource"] == "chat"
        assert ai.parameters["operation"] == "classify"
        assert ai.credentials == {"openAiApi": "openai-credentials"}

    def test_text_resource(self, synthesizer, builder):
        """Test text wording switches the AI resource."""
        requirements = as_requirements("smart content drafting")
        ai = compile_for(synthesizer, builder, requirements)[0].get_node("AI Processing")
        assert ai.parameters["resource"] == "text"
        assert ai.parameters["operation"] == "complete"

    def test_known_services_in_order(self, synthesizer, builder):
        """Test one integration node per service, chained in order."""
        requirements = as_requirements("sync contacts to hubspot and charge with stripe")
        main = compile_for(synthesizer, builder, requirements)[0]
        assert chain(main) == [
            "Manual Trigger",
            "Process Data",
            "HubSpot Integration",
            "Stripe Integration",
            "Send Notification",
        ]

    def test_unknown_services_get_unique_names(self, synthesizer, builder):
        """Test repeated HTTP nodes are suffixed."""
        requirements = as_requirements("notify slack and open jira issues")
        main = compile_for(synthesizer, builder, requirements)[0]
        assert "API Integration" in main.node_names()
        assert "API Integration 2" in main.node_names()
        assert len(set(main.node_names())) == len(main.nodes)
        assert validate_structure(main) == []

    def test_rejects_non_blueprint(self, builder):
        """Test compiling a dict is a caller error."""
        with pytest.raises(PreconditionError):
            builder.compile({"title": "x"}, [])


class TestSupportingGraphs:
    """Test data-processing and monitoring graphs."""

    def test_storage_adds_data_and_monitoring_graphs(self, synthesizer, builder):
        """Test a storage component and more than three components."""
        requirements = as_requirements("save order history to the database")
        graphs = compile_for(synthesizer, builder, requirements)

        assert [g.name.rsplit(" - ", 1)[1] for g in graphs] == [
            "Main Workflow",
            "Data Processing",
            "Monitoring",
        ]
        data = graphs[1]
        assert data.node_names() == ["Data Processing Schedule", "Fetch Data", "Process Data Batch", "Update Status"]
        assert data.active is True
        assert data.tags == ["automation", "flowsmith", "data-processing"]
        assert data.nodes[0].parameters["rule"]["interval"][0]["expression"] == "0 */4 * * *"
        assert validate_structure(data) == []

        monitoring = graphs[2]
        assert monitoring.node_names() == ["Monitoring Schedule", "System Health Check"]
        assert monitoring.tags[-1] == "monitoring"
        assert monitoring.edge_count() == 1

    def test_monitoring_option(self, synthesizer, builder, ecommerce_requirements):
        """Test add_monitoring forces the monitoring graph."""
        graphs = compile_for(
            synthesizer, builder, ecommerce_requirements, GraphOptions(add_monitoring=True)
        )
        assert len(graphs) == 2
        assert graphs[1].name.endswith(" - Monitoring")

    def test_supporting_graph_ids_restart(self, synthesizer, builder):
        """Test every graph numbers its nodes from node_1."""
        graphs = compile_for(synthesizer, builder, as_requirements("save order history to the database"))
        assert all(g.nodes[0].id == "node_1" for g in graphs)


class TestVariationsAndHelpers:
    """Test variations, trigger rules and tags."""

    def test_generate_variations(self, synthesizer, builder, ecommerce_requirements):
        """Test basic graphs come before advanced ones."""
        blueprint = synthesizer.generate(ecommerce_requirements)
        graphs = builder.generate_variations(blueprint, ecommerce_requirements)
        assert len(graphs) == 3
        assert "Input Validation" not in graphs[0].node_names()
        assert "Input Validation" in graphs[1].node_names()
        assert graphs[2].name.endswith(" - Monitoring")

    def test_builder_default_options(self, synthesizer, id_factory, ecommerce_requirements):
        """Test constructor options apply when compile gets none."""
        builder = GraphBuilder(options=GraphOptions.standard(), id_factory=id_factory)
        main = compile_for(synthesizer, builder, ecommerce_requirements)[0]
        assert "Error Handler" in main.node_names()

    def test_determine_trigger(self):
        """Test trigger rules in order."""
        assert determine_trigger("real-time and daily") == "webhook"
        assert determine_trigger("daily report") == "schedule"
        assert determine_trigger("read the support email inbox") == "email"
        assert determine_trigger("") == "manual"

    def test_sales_tags(self, synthesizer, builder):
        """Test sales titles are tagged crm and sales."""
        main = compile_for(synthesizer, builder, as_requirements("crm lead scoring for sales"))[0]
        assert main.tags == ["automation", "flowsmith", "crm", "sales"]

    def test_serialize(self, synthesizer, builder, ecommerce_requirements):
        """Test the builder's serializer shortcut."""
        main = compile_for(synthesizer, builder, ecommerce_requirements)[0]
        document = json.loads(builder.serialize(main))
        assert document["connections"]["Webhook Trigger"] == {
            "main": [[{"node": "Process Data", "type": "main", "index": 0}]]
        }


class TestNodeFactory:
    """Test node construction helpers."""

    def test_unique_names(self):
        """Test repeated names get numeric suffixes."""
        factory = NodeFactory()
        assert factory.unique_name("Step") == "Step"
        assert factory.unique_name("Step") == "Step 2"
        assert factory.unique_name("Step") == "Step 3"

    def test_cursor(self):
        """Test nodes sit at the cursor until it advances."""
        factory = NodeFactory()
        first = factory.manual_trigger()
        factory.advance()
        second = factory.process_data()
        assert first.position == (300, 300)
        assert second.position == (700, 300)
        assert second.id == "node_2"

    def test_transform_assignments(self):
        """Test the set node's assignment ids."""
        node = NodeFactory().transform_data()
        assignments = node.parameters["assignments"]["assignments"]
        assert [a["id"] for a in assignments] == ["assign_1", "assign_2", "assign_3"]
        assert node.type_version == 3
