"""
Pipeline Composer
=================
Build the application from the access policy, once, at startup.

Public routes (health, metrics) skip authentication and allowlisting.
Protected routes run API-key then IP-allowlist gates, both only when a
secret is configured. CORS runs on everything; metrics wraps everything.

    request -> metrics -> CORS -> classify -> [api key -> allowlist] -> handler
"""

from typing import Dict, List, Optional, Sequence

import structlog
from fastapi import APIRouter, FastAPI

from ..config import AccessPolicy
from ..errors import register_error_handlers
from ..gates.api_key import APIKeyGate
from ..gates.cors import CORSPolicyEnforcer
from ..gates.ip_allowlist import IPAllowlistGate
from ..gates.models import Gate, RouteClass
from ..metrics.middleware import MetricsMiddleware
from ..metrics.recorder import MetricsRecorder
from ..routes.health import create_health_router
from ..routes.metrics import create_metrics_router
from .middleware import GatePipelineMiddleware

logger = structlog.get_logger(__name__)

HEALTH_PATH = "/health"
METRICS_PATH = "/metrics"
PUBLIC_PATHS = (HEALTH_PATH, METRICS_PATH)


class PipelineComposer:
    """Turns an AccessPolicy into gate chains and a wired FastAPI app."""

    def __init__(self, policy: AccessPolicy, metrics: MetricsRecorder):
        self.policy = policy
        self.metrics = metrics

    def global_gates(self) -> List[Gate]:
        return [CORSPolicyEnforcer(self.policy.allowed_origins)]

    def protected_gates(self) -> List[Gate]:
        """Gates for protected routes; empty when no secret is configured."""
        if not self.policy.auth_enabled:
            return []

        gates: List[Gate] = [APIKeyGate(self.policy.api_key)]
        if self.policy.allowlist_enabled:
            gates.append(IPAllowlistGate(self.policy.allowed_ips))
        return gates

    def route_gates(self) -> Dict[RouteClass, List[Gate]]:
        return {
            RouteClass.PUBLIC: [],
            RouteClass.PROTECTED: self.protected_gates(),
        }

    @staticmethod
    def route_classes(protected_routers: Sequence[APIRouter]) -> Dict[str, RouteClass]:
        classes = {path: RouteClass.PUBLIC for path in PUBLIC_PATHS}
        for router in protected_routers:
            for route in router.routes:
                classes[route.path] = RouteClass.PROTECTED
        return classes

    def _log_policy(self, protected_paths: Sequence[str]) -> None:
        if self.policy.auth_enabled:
            logger.info("authentication_enabled")
            if self.policy.allowlist_enabled:
                logger.info("ip_allowlist_enabled", allowed_ips=list(self.policy.allowed_ips))
        else:
            logger.warning("authentication_disabled", reason="no_api_key_configured")

        logger.info(
            "routes_composed",
            public=list(PUBLIC_PATHS),
            protected=list(protected_paths),
        )

    def compose(
        self,
        protected_routers: Sequence[APIRouter],
        lifespan=None,
        title: str = "Image Upload Gateway",
        version: Optional[str] = None,
    ) -> FastAPI:
        """
        Wire public and protected routers behind the gate pipeline.

        Returns:
            FastAPI app with the metrics layer outermost and the gate
            pipeline directly inside it.
        """
        app = FastAPI(
            title=title,
            version=version or "0.1.0",
            lifespan=lifespan,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            redirect_slashes=False,
        )

        app.include_router(create_health_router())
        app.include_router(create_metrics_router(self.metrics, METRICS_PATH))
        for router in protected_routers:
            app.include_router(router)

        register_error_handlers(app)

        classes = self.route_classes(protected_routers)
        self._log_policy([p for p, c in classes.items() if c is RouteClass.PROTECTED])

        # Last added runs first.
        app.add_middleware(
            GatePipelineMiddleware,
            global_gates=self.global_gates(),
            route_gates=self.route_gates(),
            route_classes=classes,
        )
        app.add_middleware(
            MetricsMiddleware,
            recorder=self.metrics,
            exclude_paths=(METRICS_PATH,),
        )

        app.state.metrics = self.metrics
        app.state.access_policy = self.policy
        return app
