from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_settings(container: ApplicationContainer = Depends(get_container)):
    return container.settings


def get_persistence_gateway(container: ApplicationContainer = Depends(get_container)):
    return container.persistence


def get_user_service(container: ApplicationContainer = Depends(get_container)):
    return container.user_service


def get_subscription_service(container: ApplicationContainer = Depends(get_container)):
    return container.subscription_service


def get_meal_plan_service(container: ApplicationContainer = Depends(get_container)):
    return container.meal_plan_service


def get_testimonial_service(container: ApplicationContainer = Depends(get_container)):
    return container.testimonial_service


def get_admin_service(container: ApplicationContainer = Depends(get_container)):
    return container.admin_service
