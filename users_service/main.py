import time
import uuid
from fastapi import FastAPI, HTTPException, Request, Response, status
from loguru import logger
from typing import List
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from .config import Settings
from .metrics import ERROR_COUNT, REGISTRY, REQUEST_COUNT, REQUEST_LATENCY
from .models import EmailAlreadyRegistered, users_db
from .schemas import UserCreate, UserResponse

settings = Settings.from_env()

# Config logging JSON (niveaux INFO, WARNING, ERROR)
logger.remove()  # Supprime le handler par défaut
logger.add(
    sink=settings.log_file,
    format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
    level=settings.log_level,
    serialize=True,  # Format JSON
    rotation="1 day",  # Rotation quotidienne
)

app = FastAPI(title="Users Service")
app.state.settings = settings


@app.middleware("http")
async def log_requests(request: Request, call_next):
    trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
    start_time = time.time()
    service = settings.service_name

    with logger.contextualize(trace_id=trace_id, service=service):
        logger.info(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        latency = time.time() - start_time

        # Label par route déclarée pour éviter une série par id
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


@app.get("/metrics")
async def metrics():
    """Endpoint /metrics compatible Prometheus"""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": settings.service_name}


@app.get("/users", response_model=List[UserResponse])
async def list_users():
    logger.info("Fetching all users")
    return users_db.list()


@app.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: int):
    logger.info(f"Fetching user {user_id}")
    user = users_db.get(user_id)
    if user is None:
        logger.warning(f"User {user_id} not found")
        ERROR_COUNT.labels(service=settings.service_name, endpoint="/users/{user_id}", error_type="not_found").inc()
        raise HTTPException(status_code=404, detail="User not found")
    return user


@app.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate):
    logger.info(f"Creating user: {user.first_name} {user.last_name}")
    try:
        new_user = users_db.add(user.first_name, user.last_name, user.email)
    except EmailAlreadyRegistered as e:
        logger.error(str(e))
        ERROR_COUNT.labels(service=settings.service_name, endpoint="/users", error_type="duplicate_email").inc()
        raise HTTPException(status_code=400, detail="Email already registered")
    logger.info(f"User created with ID {new_user.id}")
    return new_user


if __name__ == "__main__":
    logger.info(f"Starting Users Service on port {settings.port}")
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
