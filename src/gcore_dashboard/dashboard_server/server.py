"""HTTP server exposing the account dashboard and key management as JSON."""

import argparse
import logging

import uvicorn
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from gcore_dashboard.core.aggregator import (
    AccountAggregator,
    ClientFactory,
    summarize_totals,
)
from gcore_dashboard.core.formatters import current_month_name
from gcore_dashboard.core.gcore import GCoreClient
from gcore_dashboard.core.results import ErrorKind
from gcore_dashboard.dashboard_server.models import DashboardResponse, HealthResponse
from gcore_dashboard.key_storage.json_store import create_key_store
from gcore_dashboard.key_storage.store import KeyStore
from gcore_dashboard.settings.api_key.settings import create_api_key_routes
from gcore_dashboard.utils.env import load_env

VERSION = "1.0.0"

ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.HTTP_STATUS: 502,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.MALFORMED_RESPONSE: 502,
}


class DashboardServer:
    """Starlette app around a key store and an ``AccountAggregator``."""

    def __init__(
        self,
        store: KeyStore | None = None,
        client_factory: ClientFactory = GCoreClient,
        cors_origins: list[str] | None = None,
    ):
        self.store = store if store is not None else create_key_store()
        self.client_factory = client_factory
        self.aggregator = AccountAggregator(self.store, client_factory)
        self.cors_origins = cors_origins or [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
        self.logger = logging.getLogger(__name__)

    async def dashboard_endpoint(self, request: Request) -> JSONResponse:
        """Load every stored account, highest traffic first."""
        try:
            summaries = await self.aggregator.load_accounts()
            response = DashboardResponse(
                month=current_month_name(),
                accounts=summaries,
                totals=summarize_totals(summaries),
            )
            return JSONResponse(response.model_dump(by_alias=True))
        except Exception as e:
            self.logger.error(f"Error loading dashboard: {e}")
            return JSONResponse({"error": f"Internal error: {str(e)}"}, status_code=500)

    async def account_detail_endpoint(self, request: Request) -> JSONResponse:
        """Load the detail view for one stored account."""
        key_id = request.path_params["key_id"]
        try:
            result = await self.aggregator.load_account_detail(key_id)
        except Exception as e:
            self.logger.error(f"Error loading account {key_id}: {e}")
            return JSONResponse({"error": f"Internal error: {str(e)}"}, status_code=500)

        if not result.ok:
            status_code = ERROR_STATUS_CODES.get(result.error_kind, 500)  # type: ignore[arg-type]
            return JSONResponse({"error": result.message}, status_code=status_code)

        return JSONResponse(result.unwrap().model_dump(by_alias=True))

    async def health_check(self, request: Request) -> JSONResponse:
        """Health check endpoint with the number of stored keys."""
        response = HealthResponse(
            status="healthy",
            service="gcore-dashboard",
            version=VERSION,
            stored_keys=len(self.store.list_keys()),
        )
        return JSONResponse(response.model_dump())

    def create_app(self) -> Starlette:
        """Create the Starlette application with routes and middleware."""
        routes = [
            Route("/api/accounts", self.dashboard_endpoint, methods=["GET"]),
            Route(
                "/api/accounts/{key_id}",
                self.account_detail_endpoint,
                methods=["GET"],
            ),
            Route("/health", self.health_check, methods=["GET"]),
        ]

        routes.extend(create_api_key_routes(self.store, self.client_factory))

        app = Starlette(routes=routes)

        app.add_middleware(
            CORSMiddleware,
            allow_origins=self.cors_origins,
            allow_methods=["GET", "POST", "DELETE", "PUT"],
            allow_headers=["*"],
        )

        return app


def main() -> None:
    """Main entry point for the dashboard server."""
    load_env()
    from gcore_dashboard.config import (
        DEFAULT_HOST,
        DEFAULT_PORT,
        configure_logging,
        create_client,
    )

    parser = argparse.ArgumentParser(
        description="GCore Dashboard Server - JSON API for account traffic usage"
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="Host to bind to")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to listen on")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--no-encryption",
        action="store_true",
        help="Store API keys in plain text instead of encrypting them",
    )

    args = parser.parse_args()
    configure_logging(verbose=args.verbose)

    server = DashboardServer(
        store=create_key_store(encrypt=not args.no_encryption),
        client_factory=create_client,
    )
    app = server.create_app()

    print(f"GCore Dashboard Server starting on http://{args.host}:{args.port}")
    print("Endpoints:")
    print("   Dashboard:")
    print("     GET /api/accounts - All accounts, highest traffic first")
    print("     GET /api/accounts/{id} - Account detail")
    print("   API Key Management:")
    print("     GET /api/keys - List keys")
    print("     POST /api/keys - Add key (tested against the API)")
    print("     PUT /api/keys/{id} - Update key")
    print("     DELETE /api/keys/{id} - Delete key")
    print("     POST /api/keys/{id}/toggle - Activate/deactivate key")
    print("     POST /api/keys/test - Test a key without storing it")
    print("   Health:")
    print("     GET /health - Health check")

    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
