"""FastAPI application entry point."""
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (parent of the testgenie package)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from testgenie.core.config import get_settings
from testgenie.core.logging import setup_logging, log_info
from testgenie.middleware.logging import LoggingMiddleware
from testgenie.agents.project_test_agent.agent import ProjectTestAgent
from testgenie.api.v1 import project_tests


def create_app(agent: ProjectTestAgent = None) -> FastAPI:
    settings = get_settings()
    setup_logging(getattr(logging, settings.log_level.upper(), logging.INFO))

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="AI-powered project-wide unit test generation"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    # The agent (sessions + tasks) lives for as long as the application does
    app.state.project_test_agent = agent or ProjectTestAgent()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cancel queued and running batches."""
        app.state.project_test_agent.shutdown()
        log_info("Project test agent stopped", "app")

    app.include_router(project_tests.router, prefix="/api")   # Project test generation

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    log_info(f"{settings.app_name} v{settings.app_version} ready", "app")
    return app


def main():
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=settings.host,
        port=settings.port,
        log_level="info"
    )


if __name__ == "__main__":
    main()
