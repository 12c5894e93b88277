"""Starlette endpoints for API key management."""

import logging

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from gcore_dashboard.core.aggregator import ClientFactory
from gcore_dashboard.core.gcore import GCoreClient
from gcore_dashboard.key_storage.json_store import create_key_store
from gcore_dashboard.key_storage.store import KeyStore
from gcore_dashboard.key_storage.validation import APIKeyValidator
from gcore_dashboard.settings.api_key.models import (
    ConnectionCheckRequest,
    ConnectionCheckResponse,
    DeleteKeyResponse,
    KeyResponse,
    StoreKeyRequest,
    StoreKeyResponse,
    UpdateKeyRequest,
)


class APIKeySettingsHandler:
    """Handles API key management endpoints."""

    def __init__(
        self,
        store: KeyStore | None = None,
        client_factory: ClientFactory = GCoreClient,
    ) -> None:
        self.store = store if store is not None else create_key_store()
        self.client_factory = client_factory
        self.validator = APIKeyValidator()
        self.logger = logging.getLogger(__name__)

    async def list_api_keys(self, request: Request) -> JSONResponse:
        """List stored keys with the secrets masked.

        GET /api/keys
        """
        try:
            keys = [
                KeyResponse.from_record(record).model_dump(by_alias=True)
                for record in self.store.list_keys()
            ]
            return JSONResponse({"keys": keys})
        except Exception as e:
            self.logger.error(f"Error listing API keys: {e}")
            return JSONResponse({"error": f"Internal error: {str(e)}"}, status_code=500)

    async def store_api_key(self, request: Request) -> JSONResponse:
        """Validate, test against the API and store a new key.

        POST /api/keys
        """
        try:
            body = await request.json()
            store_request = StoreKeyRequest(**body)
        except (TypeError, ValueError, ValidationError) as e:
            return JSONResponse(
                {"success": False, "message": f"Invalid request: {str(e)}"},
                status_code=400,
            )

        try:
            is_valid, warnings, errors = self.validator.validate_for_storage(
                store_request.name, store_request.api_key
            )
            if not is_valid:
                return JSONResponse(
                    {
                        "success": False,
                        "message": f"Invalid API key: {'; '.join(errors)}",
                        "warnings": warnings,
                    },
                    status_code=400,
                )

            name = store_request.name.strip()
            api_key = store_request.api_key.strip()

            test = await self.client_factory(api_key).test_connection()
            if not test.success:
                self.logger.warning(f"Rejected API key '{name}': {test.error}")
                return JSONResponse(
                    {"success": False, "message": test.error or "Connection test failed"},
                    status_code=400,
                )

            record = self.store.add(name, api_key)
            response = StoreKeyResponse(
                success=True,
                message=f"API key '{name}' added",
                key=KeyResponse.from_record(record),
                warnings=warnings if warnings else None,
            )
            return JSONResponse(response.model_dump(by_alias=True), status_code=201)

        except Exception as e:
            self.logger.error(f"Error storing API key: {e}")
            return JSONResponse(
                {"success": False, "message": f"Internal error: {str(e)}"},
                status_code=500,
            )

    async def update_api_key(self, request: Request) -> JSONResponse:
        """Edit the name, key or active flag of a stored key.

        PUT /api/keys/{key_id}
        """
        key_id = request.path_params["key_id"]
        try:
            body = await request.json()
            update_request = UpdateKeyRequest(**body)
        except (TypeError, ValueError, ValidationError) as e:
            return JSONResponse(
                {"success": False, "message": f"Invalid request: {str(e)}"},
                status_code=400,
            )

        try:
            existing = self.store.get(key_id)
            if existing is None:
                return JSONResponse(
                    {"success": False, "message": "API key not found"}, status_code=404
                )

            updates = update_request.model_dump(exclude_none=True)
            warnings: list[str] = []

            if "name" in updates or "api_key" in updates:
                is_valid, warnings, errors = self.validator.validate_for_storage(
                    updates.get("name", existing.name),
                    updates.get("api_key", existing.api_key),
                )
                if not is_valid:
                    return JSONResponse(
                        {
                            "success": False,
                            "message": f"Invalid API key: {'; '.join(errors)}",
                            "warnings": warnings,
                        },
                        status_code=400,
                    )
                if "name" in updates:
                    updates["name"] = updates["name"].strip()

            if "api_key" in updates:
                updates["api_key"] = updates["api_key"].strip()
                test = await self.client_factory(updates["api_key"]).test_connection()
                if not test.success:
                    return JSONResponse(
                        {
                            "success": False,
                            "message": test.error or "Connection test failed",
                        },
                        status_code=400,
                    )

            record = self.store.update(key_id, updates)
            if record is None:
                return JSONResponse(
                    {"success": False, "message": "API key not found"}, status_code=404
                )

            response = StoreKeyResponse(
                success=True,
                message=f"API key '{record.name}' updated",
                key=KeyResponse.from_record(record),
                warnings=warnings if warnings else None,
            )
            return JSONResponse(response.model_dump(by_alias=True))

        except Exception as e:
            self.logger.error(f"Error updating API key: {e}")
            return JSONResponse(
                {"success": False, "message": f"Internal error: {str(e)}"},
                status_code=500,
            )

    async def toggle_api_key(self, request: Request) -> JSONResponse:
        """Flip the active flag of a stored key.

        POST /api/keys/{key_id}/toggle
        """
        key_id = request.path_params["key_id"]
        try:
            existing = self.store.get(key_id)
            if existing is None:
                return JSONResponse(
                    {"success": False, "message": "API key not found"}, status_code=404
                )

            record = self.store.update(key_id, {"is_active": not existing.is_active})
            if record is None:
                return JSONResponse(
                    {"success": False, "message": "API key not found"}, status_code=404
                )
            state = "activated" if record.is_active else "deactivated"
            response = StoreKeyResponse(
                success=True,
                message=f"API key '{record.name}' {state}",
                key=KeyResponse.from_record(record),
            )
            return JSONResponse(response.model_dump(by_alias=True))

        except Exception as e:
            self.logger.error(f"Error toggling API key: {e}")
            return JSONResponse(
                {"success": False, "message": f"Internal error: {str(e)}"},
                status_code=500,
            )

    async def delete_api_key(self, request: Request) -> JSONResponse:
        """Delete a stored key.

        DELETE /api/keys/{key_id}
        """
        key_id = request.path_params["key_id"]
        try:
            deleted = self.store.delete(key_id)
            if not deleted:
                response = DeleteKeyResponse(success=False, message="API key not found")
                return JSONResponse(response.model_dump(), status_code=404)

            response = DeleteKeyResponse(success=True, message=f"API key {key_id} deleted")
            return JSONResponse(response.model_dump())

        except Exception as e:
            self.logger.error(f"Error deleting API key: {e}")
            return JSONResponse(
                {"success": False, "message": f"Internal error: {str(e)}"},
                status_code=500,
            )

    async def test_api_key(self, request: Request) -> JSONResponse:
        """Test an API key against the GCore API without storing it.

        POST /api/keys/test
        """
        try:
            body = await request.json()
            check_request = ConnectionCheckRequest(**body)
        except (TypeError, ValueError, ValidationError) as e:
            return JSONResponse(
                {"success": False, "error": f"Invalid request: {str(e)}"},
                status_code=400,
            )

        is_valid, error = self.validator.validate_api_key(check_request.api_key)
        if not is_valid:
            return JSONResponse(
                ConnectionCheckResponse(success=False, error=error).model_dump(),
                status_code=400,
            )

        result = await self.client_factory(check_request.api_key.strip()).test_connection()
        response = ConnectionCheckResponse(
            success=result.success, data=result.data, error=result.error
        )
        return JSONResponse(response.model_dump())


def create_api_key_routes(
    store: KeyStore | None = None, client_factory: ClientFactory = GCoreClient
) -> list[Route]:
    """Create API key management routes.

    Returns:
        List of Route objects for API key management
    """
    handler = APIKeySettingsHandler(store=store, client_factory=client_factory)

    return [
        Route("/api/keys", handler.list_api_keys, methods=["GET"]),
        Route("/api/keys", handler.store_api_key, methods=["POST"]),
        Route("/api/keys/test", handler.test_api_key, methods=["POST"]),
        Route("/api/keys/{key_id}", handler.update_api_key, methods=["PUT"]),
        Route("/api/keys/{key_id}", handler.delete_api_key, methods=["DELETE"]),
        Route("/api/keys/{key_id}/toggle", handler.toggle_api_key, methods=["POST"]),
    ]
