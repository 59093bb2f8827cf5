from rentflow.api.routes.leases import router as leases_router

__all__ = [
    "leases_router",
]
