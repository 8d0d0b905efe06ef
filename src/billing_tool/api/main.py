import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from billing_tool.config.settings import configure_logging, get_settings
from billing_tool.engine import reconcile, remove_company, summarize, update_active_count
from billing_tool.services import import_service
from billing_tool.services.export_service import results_to_csv
from billing_tool.services.results_view import filter_results, sort_results
from billing_tool.services.summary_service import generate_summary
from billing_tool.api.schemas import (
    BillingResultModel,
    CompanyIn,
    DemoResponse,
    PricingRuleIn,
    ReconcileRequest,
    RemoveCompanyRequest,
    ResultsRequest,
    ResultsResponse,
    StatsModel,
    SummaryResponse,
    UpdateCountRequest,
    ViewRequest,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Billing Reconciliation API",
    description="Backend API for the contract billing reconciliation dashboard",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _response(results) -> ResultsResponse:
    return ResultsResponse(
        results=[BillingResultModel.from_result(r) for r in results],
        stats=StatsModel.from_stats(summarize(results)),
    )


@app.get("/")
async def root():
    return {"status": "online", "message": "Billing Reconciliation API Active"}


@app.get("/demo", response_model=DemoResponse)
async def demo_data():
    """Built-in demo companies and contracts."""
    companies = import_service.parse_company_text(import_service.DEMO_COMPANY_TEXT)
    rules = import_service.parse_pricing_text(import_service.DEMO_PRICING_TEXT)
    return DemoResponse(
        companies=[CompanyIn.from_record(c) for c in companies],
        rules=[PricingRuleIn.from_rule(r) for r in rules],
    )


@app.post("/reconcile", response_model=ResultsResponse)
async def reconcile_data(req: ReconcileRequest):
    try:
        results = reconcile(
            [c.to_record() for c in req.companies],
            [r.to_rule() for r in req.rules],
        )
    except Exception as e:
        logger.error(f"Reconciliation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    logger.info("Reconciled %d companies", len(results))
    return _response(results)


@app.post("/results/update", response_model=ResultsResponse)
async def update_count(req: UpdateCountRequest):
    """Re-price one company after an inline edit of its active count."""
    results = update_active_count(req.to_results(), req.identifier, req.active_count)
    return _response(results)


@app.post("/results/remove", response_model=ResultsResponse)
async def remove_row(req: RemoveCompanyRequest):
    results = remove_company(req.to_results(), req.identifier)
    return _response(results)


@app.post("/results/view", response_model=ResultsResponse)
async def view_results(req: ViewRequest):
    """Filtered and sorted copy of the results, as shown in the table."""
    try:
        data = filter_results(req.to_results(), req.search, req.status_filter)
        data = sort_results(data, req.sort_key, req.direction)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _response(data)


@app.post("/export/csv")
async def export_csv(req: ResultsRequest):
    settings = get_settings()
    content = results_to_csv(req.to_results(), currency=settings.currency)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{settings.export_filename}"'},
    )


@app.post("/summary", response_model=SummaryResponse)
def summary(req: ResultsRequest):
    """Executive report from the LLM; falls back to a fixed message on failure."""
    return SummaryResponse(summary=generate_summary(req.to_results()))
