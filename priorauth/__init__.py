"""Medicare Prior Authorization Backend Package.

This package provides the determination pipeline and FastAPI service for
Medicare prior-authorization decision support, including:

- Identifier validators (MBI, NPI, ICD-10)
- Reference dataset loading (PA-required lists, NCCI PTP/MUE, SAD list)
- Five independent rule evaluators (eligibility, PA required, NCD/LCD
  coverage, NCCI bundling, SAD exclusion)
- A generation-tagged case orchestrator and dashboard gate
- Medical necessity letter fact assembly and drafting via Claude

Usage:
    # Development (from project root):
    uvicorn priorauth.app:app --reload --port 8080

Modules:
    app: FastAPI application entry point
    validation: Identifier and intake validators
    datasets: Reference dataset loader and single-flight cache
    connectors: External registry clients (CMS MCD, 270/271, NPPES, NLM)
    rules: Rule evaluators and the fan-out engine
    orchestrator: Per-session case orchestration
    letter: Letter fact assembly
    claude_client: Letter drafting via the Anthropic API
"""

__version__ = "0.1.0"
