from interaction_service.health.router import router


__all__ = ["router"]
