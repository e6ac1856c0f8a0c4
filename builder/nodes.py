"""n8n node constructors with a per-graph id counter and layout cursor.

A NodeFactory is created fresh for every graph, so node ids restart at
``node_1`` and the cursor restarts at (300, 300) for each graph. Nodes are
placed at the current cursor; the builder calls ``advance()`` after each
main-path node.
"""

from typing import Any, Dict, Optional, Set, Tuple

from contracts import GraphNode


START_X = 300
START_Y = 300
STEP_X = 400
ERROR_HANDLER_OFFSET_Y = 300
ERROR_NOTIFICATION_OFFSET_Y = 500

WEBHOOK = "n8n-nodes-base.webhook"
CRON = "n8n-nodes-base.cron"
EMAIL_READ = "n8n-nodes-base.emailReadImap"
MANUAL = "n8n-nodes-base.manualTrigger"
FUNCTION = "n8n-nodes-base.function"
SET = "n8n-nodes-base.set"
OPENAI = "n8n-nodes-base.openAi"
HTTP_REQUEST = "n8n-nodes-base.httpRequest"
HUBSPOT = "n8n-nodes-base.hubspot"
SALESFORCE = "n8n-nodes-base.salesforce"
STRIPE = "n8n-nodes-base.stripe"
POSTGRES = "n8n-nodes-base.postgres"
EMAIL_SEND = "n8n-nodes-base.emailSend"

NOTIFICATION_FROM = "automation@company.com"
ADMIN_EMAIL = "admin@company.com"

VALIDATION_CODE = """\
const inputData = $input.all();

for (let item of inputData) {
  if (!item.json || typeof item.json !== 'object') {
    throw new Error('Invalid input data structure');
  }
  for (let key in item.json) {
    if (typeof item.json[key] === 'string') {
      item.json[key] = item.json[key]
        .replace(/<script[^>]*>.*?<\\/script>/gi, '')
        .replace(/<[^>]*>/g, '')
        .trim();
    }
  }
  item.json._validated_at = new Date().toISOString();
}

return inputData;
"""

PROCESS_CODE = """\
const items = $input.all();

for (let item of items) {
  item.json.processed = true;
  item.json.processed_at = new Date().toISOString();

  if (item.json.amount && item.json.tax_rate) {
    item.json.total_amount = item.json.amount * (1 + item.json.tax_rate);
  }

  if (item.json.type) {
    switch (item.json.type.toLowerCase()) {
      case 'urgent':
        item.json.priority = 'high';
        break;
      case 'important':
        item.json.priority = 'medium';
        break;
      default:
        item.json.priority = 'low';
    }
  }
}

return items;
"""

BATCH_CODE = """\
const items = $input.all();

return items.map(item => ({
  json: {
    ...item.json,
    processed: true,
    processed_at: new Date().toISOString()
  }
}));
"""

ERROR_HANDLER_CODE = """\
const error = $input.first().json;

return [{
  json: {
    error_type: error.name || 'Unknown Error',
    error_message: error.message || 'An unexpected error occurred',
    error_stack: error.stack,
    timestamp: new Date().toISOString(),
    workflow_id: $workflow.id,
    execution_id: $execution.id,
    node_name: error.node?.name || 'Unknown Node',
    retry_count: error.retry_count || 0
  }
}];
"""

HEALTH_CHECK_CODE = """\
const recent = $workflow.getExecutions(10);
const failureRate = recent.length
  ? recent.filter(e => e.status === 'failed').length / recent.length
  : 0;

return [{
  json: {
    checks: [{
      check: 'workflow_failure_rate',
      status: failureRate < 0.1 ? 'healthy' : 'warning',
      value: failureRate,
      threshold: 0.1
    }],
    timestamp: new Date().toISOString()
  }
}];
"""

ERROR_MESSAGE = """\
An error occurred in the automation workflow:

Error Type: {{$json.error_type}}
Message: {{$json.error_message}}
Node: {{$json.node_name}}
Time: {{$json.timestamp}}
Workflow: {{$json.workflow_id}}

Please check the workflow execution for more details.
"""


def cron_rule(expression: str) -> Dict[str, Any]:
    return {"rule": {"interval": [{"field": "cronExpression", "expression": expression}]}}


class NodeFactory:
    """Builds GraphNodes for a single graph."""

    def __init__(self):
        self._counter = 0
        self.x = START_X
        self.y = START_Y
        self._names: Set[str] = set()

    def next_id(self) -> str:
        self._counter += 1
        return f"node_{self._counter}"

    def advance(self) -> None:
        self.x += STEP_X

    def unique_name(self, name: str) -> str:
        """``name``, or ``name 2``, ``name 3``... if already taken in this graph."""
        candidate = name
        suffix = 2
        while candidate in self._names:
            candidate = f"{name} {suffix}"
            suffix += 1
        self._names.add(candidate)
        return candidate

    def node(
        self,
        name: str,
        node_type: str,
        parameters: Optional[Dict[str, Any]] = None,
        type_version: int = 1,
        credentials: Optional[Dict[str, str]] = None,
        position: Optional[Tuple[int, int]] = None,
    ) -> GraphNode:
        """Create a node at the cursor (or at ``position``) with a unique name."""
        return GraphNode(
            id=self.next_id(),
            name=self.unique_name(name),
            type=node_type,
            type_version=type_version,
            position=position or (self.x, self.y),
            parameters=parameters or {},
            credentials=credentials,
        )

    # -- triggers ---------------------------------------------------------

    def webhook_trigger(self) -> GraphNode:
        return self.node("Webhook Trigger", WEBHOOK, {
            "httpMethod": "POST",
            "path": "automation-trigger",
            "responseMode": "responseNode",
            "options": {"noResponseBody": False},
        })

    def schedule_trigger(self, name: str = "Schedule Trigger", expression: str = "0 9 * * 1-5") -> GraphNode:
        return self.node(name, CRON, cron_rule(expression))

    def email_trigger(self) -> GraphNode:
        return self.node(
            "Email Trigger",
            EMAIL_READ,
            {"format": "resolved", "options": {"allowUnauthorizedCerts": False, "forceReconnect": True}},
            type_version=2,
            credentials={"imap": "email-credentials"},
        )

    def manual_trigger(self) -> GraphNode:
        return self.node("Manual Trigger", MANUAL)

    # -- processing -------------------------------------------------------

    def validation(self) -> GraphNode:
        return self.node("Input Validation", FUNCTION, {"functionCode": VALIDATION_CODE})

    def ai_processing(self, resource: str, operation: str) -> GraphNode:
        return self.node(
            "AI Processing",
            OPENAI,
            {
                "resource": resource,
                "operation": operation,
                "model": "gpt-3.5-turbo",
                "messages": {
                    "messageValues": [
                        {
                            "role": "system",
                            "message": (
                                "You are an AI assistant helping with business process automation. "
                                "Analyze the input data and provide structured output."
                            ),
                        },
                        {"role": "user", "message": "={{JSON.stringify($json)}}"},
                    ]
                },
                "options": {"temperature": 0.3, "maxTokens": 1000},
            },
            credentials={"openAiApi": "openai-credentials"},
        )

    def transform_data(self) -> GraphNode:
        assignments = [
            ("processed_at", "={{new Date().toISOString()}}"),
            ("status", "processed"),
            ("original_data", "={{JSON.stringify($json)}}"),
        ]
        return self.node(
            "Transform Data",
            SET,
            {
                "mode": "manual",
                "duplicateItem": False,
                "assignments": {
                    "assignments": [
                        {"id": f"assign_{i}", "name": name, "value": value, "type": "string"}
                        for i, (name, value) in enumerate(assignments, start=1)
                    ]
                },
                "options": {},
            },
            type_version=3,
        )

    def process_data(self) -> GraphNode:
        return self.node("Process Data", FUNCTION, {"functionCode": PROCESS_CODE})

    # -- integrations -----------------------------------------------------

    def hubspot(self) -> GraphNode:
        return self.node(
            "HubSpot Integration",
            HUBSPOT,
            {
                "resource": "contact",
                "operation": "upsert",
                "email": "={{$json.email}}",
                "additionalFields": {
                    "firstName": "={{$json.first_name}}",
                    "lastName": "={{$json.last_name}}",
                    "company": "={{$json.company}}",
                },
            },
            type_version=2,
            credentials={"hubspotApi": "hubspot-credentials"},
        )

    def salesforce(self) -> GraphNode:
        return self.node(
            "Salesforce Integration",
            SALESFORCE,
            {
                "resource": "contact",
                "operation": "upsert",
                "externalId": "Email",
                "externalIdValue": "={{$json.email}}",
                "updateFields": {
                    "FirstName": "={{$json.first_name}}",
                    "LastName": "={{$json.last_name}}",
                    "Email": "={{$json.email}}",
                },
            },
            type_version=2,
            credentials={"salesforceOAuth2Api": "salesforce-credentials"},
        )

    def stripe(self) -> GraphNode:
        return self.node(
            "Stripe Integration",
            STRIPE,
            {
                "resource": "customer",
                "operation": "create",
                "email": "={{$json.email}}",
                "additionalFields": {
                    "name": "={{$json.name}}",
                    "description": "={{$json.description}}",
                },
            },
            credentials={"stripeApi": "stripe-credentials"},
        )

    def database_insert(self) -> GraphNode:
        return self.node(
            "Database Insert",
            POSTGRES,
            {
                "operation": "insert",
                "schema": "public",
                "table": "automation_data",
                "columns": "data, created_at",
                "additionalFields": {"mode": "independently"},
            },
            type_version=2,
            credentials={"postgres": "database-credentials"},
        )

    def http_request(self) -> GraphNode:
        return self.node(
            "API Integration",
            HTTP_REQUEST,
            {
                "method": "POST",
                "url": "https://api.example.com/webhook",
                "sendHeaders": True,
                "headerParameters": {
                    "parameters": [
                        {"name": "Content-Type", "value": "application/json"},
                        {"name": "Authorization", "value": "Bearer {{$credentials.apiToken}}"},
                    ]
                },
                "sendBody": True,
                "bodyParameters": {
                    "parameters": [
                        {"name": "data", "value": "={{JSON.stringify($json)}}"},
                        {"name": "timestamp", "value": "={{new Date().toISOString()}}"},
                    ]
                },
                "options": {"timeout": 30000},
            },
            type_version=4,
        )

    # -- output and errors ------------------------------------------------

    def notification(self, title: str) -> GraphNode:
        message = (
            "The automation process has been completed successfully.\n\n"
            "Details:\n"
            f"- Process: {title}\n"
            "- Completed: {{new Date().toLocaleString()}}\n"
            '- Status: {{$json.status || "Success"}}\n'
            "- Records processed: {{$json.count || 1}}\n"
        )
        return self.node(
            "Send Notification",
            EMAIL_SEND,
            {
                "fromEmail": NOTIFICATION_FROM,
                "toEmail": f'={{{{$json.notification_email || "{ADMIN_EMAIL}"}}}}',
                "subject": f"{title} - Process Completed",
                "message": message,
                "options": {"allowUnauthorizedCerts": False, "appendAttribution": False},
            },
            type_version=2,
            credentials={"smtp": "email-credentials"},
        )

    def error_handler(self) -> GraphNode:
        return self.node(
            "Error Handler",
            FUNCTION,
            {"functionCode": ERROR_HANDLER_CODE},
            position=(self.x, self.y + ERROR_HANDLER_OFFSET_Y),
        )

    def error_notification(self) -> GraphNode:
        return self.node(
            "Error Notification",
            EMAIL_SEND,
            {
                "fromEmail": NOTIFICATION_FROM,
                "toEmail": ADMIN_EMAIL,
                "subject": "Automation Error Alert",
                "message": ERROR_MESSAGE,
                "options": {"allowUnauthorizedCerts": False},
            },
            type_version=2,
            credentials={"smtp": "email-credentials"},
            position=(self.x, self.y + ERROR_NOTIFICATION_OFFSET_Y),
        )

    # -- supporting graphs ------------------------------------------------

    def fetch_pending(self) -> GraphNode:
        return self.node(
            "Fetch Data",
            POSTGRES,
            {
                "operation": "select",
                "query": "SELECT * FROM pending_data WHERE processed = false ORDER BY created_at ASC LIMIT 100",
            },
            type_version=2,
            credentials={"postgres": "database-credentials"},
        )

    def process_batch(self) -> GraphNode:
        return self.node("Process Data Batch", FUNCTION, {"functionCode": BATCH_CODE})

    def update_status(self) -> GraphNode:
        return self.node(
            "Update Status",
            POSTGRES,
            {
                "operation": "update",
                "table": "pending_data",
                "updateKey": "id",
                "columns": "processed, processed_at",
                "additionalFields": {"mode": "independently"},
            },
            type_version=2,
            credentials={"postgres": "database-credentials"},
        )

    def health_check(self) -> GraphNode:
        return self.node("System Health Check", FUNCTION, {"functionCode": HEALTH_CHECK_CODE})
