"""Glue between the JSON views and the matching core."""

from __future__ import annotations

import dataclasses
import functools
import json
import logging

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from blood.exceptions import InvalidInput, MatchingError

logger = logging.getLogger(__name__)


def to_json(value):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def request_data(request) -> dict:
    if request.content_type == 'application/json':
        try:
            payload = json.loads(request.body or b'{}')
        except ValueError:
            raise InvalidInput("Request body is not valid JSON") from None
        if not isinstance(payload, dict):
            raise InvalidInput("Request body must be a JSON object")
        return payload
    if request.method == 'GET':
        return request.GET.dict()
    return request.POST.dict()


def validated(form_class, request, data=None):
    form = form_class(data if data is not None else request_data(request))
    if not form.is_valid():
        raise FormInvalid(form)
    return form.cleaned_data


class FormInvalid(InvalidInput):
    def __init__(self, form):
        super().__init__("Invalid input")
        self.errors = form.errors.get_json_data()

    def as_dict(self):
        payload = super().as_dict()
        payload['fields'] = {
            name: [e['message'] for e in errors] for name, errors in self.errors.items()
        }
        return payload


def api_view(*methods):
    """Authenticated JSON endpoint; domain errors become error responses."""

    def decorator(view):
        @login_required
        @require_http_methods(list(methods))
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                result = view(request, *args, **kwargs)
            except MatchingError as exc:
                logger.info(
                    "%s %s failed for %s: %s",
                    request.method,
                    request.path,
                    request.user.get_username(),
                    exc.message,
                )
                return JsonResponse(exc.as_dict(), status=exc.status_code)
            if isinstance(result, JsonResponse):
                return result
            return JsonResponse(to_json(result), safe=False)
        return wrapper
    return decorator


def created(payload):
    return JsonResponse(to_json(payload), status=201, safe=False)
