import os
import time
import uuid
from contextlib import asynccontextmanager
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from core.config import setting
from core.utils import (
    ActionRequestError,
    close_client,
    encode_transaction,
    parse_account,
    prepare_transfer_transaction,
    sol_to_lamports,
)
from schema import (
    ActionError,
    ActionGetResponse,
    ActionLinks,
    ActionParameter,
    ActionPostRequest,
    ActionPostResponse,
    ActionRule,
    ActionsJson,
    LinkedAction,
)

AMOUNT_PARAMETER_NAME = "amount"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Using Solana RPC endpoint {setting.solana_rpc_url}")
    yield
    await close_client()


# Rate limiter setup
limiter = Limiter(key_func=get_remote_address)

# Initialize FastAPI app
app = FastAPI(
    title="Prediction Action API",
    description="Solana Action that builds unsigned prediction transfers",
    version="1.0.0",
    lifespan=lifespan,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Actions clients call in from any origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Content-Encoding", "Accept-Encoding"],
)


@app.exception_handler(ActionRequestError)
async def action_request_error_handler(request: Request, exc: ActionRequestError):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning(f"Rejected request {request_id}: {exc.message}")
    return JSONResponse(status_code=400, content=ActionError(message=exc.message).model_dump())


def describe_action(request: Request) -> str:
    """Short label for the action a request targets, filled in by the handler."""
    prediction = getattr(request.state, "prediction", None)
    if prediction is None:
        return "metadata"
    return f"predict answer={prediction['answer']} amount={prediction['amount']}"


# Tags every action call with an id and logs how it ended
@app.middleware("http")
async def log_action_request(request: Request, call_next):
    started = time.time()
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    origin = request.headers.get("origin") or (request.client.host if request.client else "unknown")
    logger.info(f"Action call {request_id}: {request.method} {request.url.path} (origin {origin})")

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"Action call {request_id} failed building {describe_action(request)}: {e} "
            f"after {time.time() - started:.3f}s"
        )
        raise

    logger.info(
        f"Action call {request_id} answered {response.status_code} for {describe_action(request)} "
        f"in {time.time() - started:.3f}s"
    )
    response.headers["X-Request-ID"] = request_id
    return response


predict = APIRouter(prefix="/api/predict", tags=["Predict"])


def get_prediction_info() -> dict:
    return {
        "icon": setting.ICON_URL,
        "title": "Will Trump win tonight's debate? 🤔",
        "description": f"Sleepy Joe vs Daddy Trump. Place your bets now! 🚀 (Default {setting.default_amount_sol} SOL)",
    }


@predict.get("", response_model=ActionGetResponse, response_model_exclude_none=True)
async def get_action():
    """Describe the prediction action and its links"""
    default_amount = setting.default_amount_sol
    amount_parameters = [
        ActionParameter(name=AMOUNT_PARAMETER_NAME, label="Enter a custom SOL amount"),
    ]
    return ActionGetResponse(
        **get_prediction_info(),
        label=f"{default_amount} SOL",
        links=ActionLinks(
            actions=[
                LinkedAction(href=f"/api/predict/yes/{default_amount}", label="Yes"),
                LinkedAction(href=f"/api/predict/no/{default_amount}", label="No"),
                LinkedAction(
                    href=f"/api/predict/yes/{{{AMOUNT_PARAMETER_NAME}}}",
                    label="Yes",
                    parameters=amount_parameters,
                ),
                LinkedAction(
                    href=f"/api/predict/no/{{{AMOUNT_PARAMETER_NAME}}}",
                    label="No",
                    parameters=amount_parameters,
                ),
            ]
        ),
    )


@predict.post("/{answer}/{amount}", response_model=ActionPostResponse, response_model_exclude_none=True)
@predict.post("/{answer}", response_model=ActionPostResponse, response_model_exclude_none=True)
@limiter.limit(setting.rate_limit)
async def build_prediction(
    answer: str,
    body: ActionPostRequest,
    request: Request,
    amount: str | None = None,
):
    """Build an unsigned transfer of `amount` SOL to the prediction wallet"""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    if amount is None:
        amount = str(setting.default_amount_sol)
    request.state.prediction = {"answer": answer, "amount": amount}
    logger.info(f"Building prediction {request_id}: answer={answer}, amount={amount}, account={body.account}")

    sender = parse_account(body.account)
    lamports = sol_to_lamports(amount)
    transaction = await prepare_transfer_transaction(
        sender,
        parse_account(setting.destination_wallet),
        lamports,
    )
    return ActionPostResponse(transaction=encode_transaction(transaction))


app.include_router(predict)


@app.get("/actions.json", response_model=ActionsJson)
async def get_actions_json():
    """Map website paths to Action API paths"""
    return ActionsJson(
        rules=[
            ActionRule(path_pattern="/predict", api_path="/api/predict"),
            ActionRule(path_pattern="/api/predict/**", api_path="/api/predict/**"),
        ]
    )


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("app:app", host="0.0.0.0", port=port, reload=False)
