import math
import time
import uuid
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from typing import List
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from .config import Settings
from .metrics import ERROR_COUNT, REGISTRY, REQUEST_COUNT, REQUEST_LATENCY
from .models import orders_db
from .schemas import OrderCreate, OrderResponse
from .user_lookup import HttpUserLookup, UserLookup, UserNotFound, UserServiceUnavailable
from .workflow import OrderWorkflow

settings = Settings.from_env()

# Config logging JSON
logger.remove()
logger.add(
    sink=settings.log_file,
    format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
    level=settings.log_level,
    serialize=True,
    rotation="1 day",
)

app = FastAPI(title="Orders Service")
app.state.settings = settings


def _json_safe(value):
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Le corps peut contenir NaN/Infinity, refusés par l'encodeur JSON strict
    detail = _json_safe(jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=422, content={"detail": detail})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
    start_time = time.time()
    service = settings.service_name

    # Conservé pour la propagation vers le Users Service
    request.state.trace_id = trace_id

    with logger.contextualize(trace_id=trace_id, service=service):
        logger.info(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        latency = time.time() - start_time

        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        REQUEST_COUNT.labels(
            service=service,
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        REQUEST_LATENCY.labels(service=service, method=request.method, endpoint=endpoint).observe(latency)

        logger.info(
            f"Response status: {response.status_code}",
            status=response.status_code,
            latency=latency,
        )
        response.headers["X-Trace-ID"] = trace_id
        return response


def get_user_lookup() -> UserLookup:
    return HttpUserLookup(
        settings.users_service_url,
        timeout=settings.users_service_timeout,
        service_name=settings.service_name,
    )


def get_workflow(users: UserLookup = Depends(get_user_lookup)) -> OrderWorkflow:
    return OrderWorkflow(orders_db, users)


@app.get("/metrics")
async def metrics():
    """Endpoint /metrics compatible Prometheus"""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": settings.service_name}


@app.get("/orders", response_model=List[OrderResponse])
async def list_orders(workflow: OrderWorkflow = Depends(get_workflow)):
    logger.info("Fetching all orders")
    return workflow.list_orders()


@app.get("/orders/user/{user_id}", response_model=List[OrderResponse])
async def list_orders_by_user(user_id: int, workflow: OrderWorkflow = Depends(get_workflow)):
    logger.info(f"Fetching orders of user {user_id}")
    return workflow.list_orders_by_user(user_id)


@app.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, workflow: OrderWorkflow = Depends(get_workflow)):
    logger.info(f"Fetching order {order_id}")
    order = workflow.get_order(order_id)
    if order is None:
        logger.warning(f"Order {order_id} not found")
        ERROR_COUNT.labels(service=settings.service_name, endpoint="/orders/{order_id}", error_type="not_found").inc()
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@app.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(order: OrderCreate, request: Request, workflow: OrderWorkflow = Depends(get_workflow)):
    trace_id = getattr(request.state, "trace_id", None)
    logger.info(f"Creating order for user {order.user_id}: {order.quantity} x {order.product_name}")

    try:
        return await workflow.create_order(order, trace_id=trace_id)
    except UserNotFound:
        ERROR_COUNT.labels(service=settings.service_name, endpoint="/orders", error_type="user_not_found").inc()
        raise HTTPException(status_code=400, detail="User not found")
    except UserServiceUnavailable as e:
        logger.error(f"Order rejected, user {order.user_id} could not be validated: {e.reason}")
        ERROR_COUNT.labels(service=settings.service_name, endpoint="/orders", error_type="user_service_unavailable").inc()
        raise HTTPException(status_code=503, detail="Users service unavailable")


if __name__ == "__main__":
    logger.info(f"Starting Orders Service on port {settings.port}")
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
