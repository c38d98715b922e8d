"""Contoso Dental bot — a Bot Framework front-end for a dental clinic.

Architecture Overview
=====================

Each inbound message goes through one routing decision:

1. **classify** — the utterance is sent to an Azure AI Language CLU
   deployment, which returns a top intent, a confidence score and entities.

2. **dispatch** — when the score is above the confidence threshold (0.7 by
   default) and the intent is one of the six known ones, the matching
   handler calls the scheduler API and formats a reply.

3. **fallback** — otherwise the utterance goes to the custom question
   answering knowledge base and its top answer is sent back.

Error policy
------------
- The classifier fails open: any error means "no prediction", so the
  message falls back to question answering.
- Intent handlers fail closed: backend errors become a "please try again
  later" reply.
- Anything else escaping a turn is caught by the adapter's turn error
  handler, which sends a generic apology.

Package Structure
-----------------
- ``dentabot/config.py`` — ``Settings`` built once from env / SSM
- ``dentabot/models.py`` — Pydantic models (prediction, scheduler payloads)
- ``dentabot/router.py`` — confidence-threshold routing
- ``dentabot/handlers.py`` — intent handler table
- ``dentabot/bot.py`` — ``ActivityHandler`` (messages, welcome)
- ``dentabot/adapter.py`` — HTTP and WebSocket adapters, turn error handler
- ``dentabot/server.py`` — FastAPI application
- ``dentabot/main.py`` — console chat for local testing
- ``dentabot/services/`` — CLU, QnA and scheduler clients; metrics
- ``dentabot/scheduler/`` — the mock scheduling backend
"""

__version__ = "1.0.0"
