"""HTTP views for the food orders app.

Views are kept intentionally small: they validate requests (via
Pydantic), map them to domain DTOs, delegate to ``FoodOrderService`` and
translate the result into a status code, alert headers and a JSON body.

The service is obtained from ``providers.get_food_order_service()`` on
every request, so tests and deployments can swap the search index (or the
whole service) without touching view logic.

Idempotency: ``POST /food-orders/new`` accepts an ``Idempotency-Key``
header. The first request is processed and its response stored; retries
with the same payload replay the stored response, and reusing the key with
a different payload returns HTTP 409.
"""

import logging

from django.db import transaction
from django.urls import reverse
from pydantic import ValidationError
from rest_framework import status
from rest_framework.exceptions import ParseError
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from . import providers
from .alerts import entity_creation_alert, entity_deletion_alert, entity_update_alert, failure_alert
from .domain import FoodOrder
from .idempotency import finalize, get_or_create_idempotent
from .schemas import FoodOrderIn, FoodOrderOut, OrderDTO, TicketGoOut

logger = logging.getLogger(__name__)

ENTITY_NAME = "foodOrder"
TICKET_IS_NULL = "ticket-is-null"
TICKET_LOCATION = "/api/tickets/{}"


def _order_body(order: FoodOrder) -> dict:
    return FoodOrderOut.model_validate(order).model_dump(mode="json")


def _validation_error(exc: ValidationError) -> Response:
    return Response(
        {"detail": exc.errors(include_url=False, include_context=False)},
        status=status.HTTP_400_BAD_REQUEST,
        headers=failure_alert(ENTITY_NAME, "invalidpayload", "Invalid foodOrder payload"),
    )


def _read_payload(request, error_key: str, with_detail: bool):
    """Return ``(data, None)``, or ``(None, 400 response)`` for a body that does not parse."""
    try:
        return request.data, None
    except ParseError as e:
        body = {"detail": str(e.detail)} if with_detail else None
        return None, Response(
            body,
            status=status.HTTP_400_BAD_REQUEST,
            headers=failure_alert(ENTITY_NAME, error_key, "Malformed request body"),
        )


def _save(order: FoodOrder) -> FoodOrder:
    # the rows roll back when the search index rejects the write
    with transaction.atomic():
        return providers.get_food_order_service().save(order)


def _create(dto: FoodOrderIn) -> Response:
    result = _save(dto.to_domain())
    headers = {
        "Location": reverse("food_orders:detail", kwargs={"order_id": result.id}),
        **entity_creation_alert(ENTITY_NAME, str(result.id)),
    }
    return Response(_order_body(result), status=status.HTTP_201_CREATED, headers=headers)


class ScopedThrottleMixin:
    """Apply ``read_scope`` to GET requests and ``write_scope`` to the rest."""

    throttle_classes = [ScopedRateThrottle]
    read_scope = "food_orders_read"
    write_scope = "food_orders_write"

    def get_throttles(self):
        # DRF evaluates throttles in initial(), before the handler runs
        self.throttle_scope = self.read_scope if self.request.method == "GET" else self.write_scope
        return [throttle() for throttle in self.throttle_classes]


class FoodOrdersCollectionView(ScopedThrottleMixin, APIView):
    """List, create and update food orders on ``/food-orders``."""

    def get(self, request):
        """List food orders.

        ``?filter=ticket-is-null`` restricts the list to orders without a
        ticket; any other value, or none, lists everything.
        """
        service = providers.get_food_order_service()
        if request.query_params.get("filter") == TICKET_IS_NULL:
            logger.debug("REST request to get all FoodOrders where ticket is null")
            orders = service.find_all_where_ticket_is_null()
        else:
            logger.debug("REST request to get all FoodOrders")
            orders = service.find_all()
        return Response([_order_body(o) for o in orders])

    def post(self, request):
        """Create a new food order.

        Returns:
            Response: One of the following responses.
            - 201 with the saved order and a Location header.
            - 400 with an ``idexists`` failure alert and an empty body when
              the payload already carries an id.
            - 400 with ``{detail: [...]}`` for schema errors.
        """
        data, error = _read_payload(request, "invalidpayload", with_detail=True)
        if error:
            return error
        logger.debug("REST request to save FoodOrder : %s", data)
        try:
            dto = FoodOrderIn.model_validate(data)
        except ValidationError as e:
            return _validation_error(e)
        if dto.id is not None:
            return Response(
                status=status.HTTP_400_BAD_REQUEST,
                headers=failure_alert(ENTITY_NAME, "idexists", "A new foodOrder cannot already have an ID"),
            )
        return _create(dto)

    def put(self, request):
        """Update an existing food order, or create it when it has no id."""
        data, error = _read_payload(request, "invalidpayload", with_detail=True)
        if error:
            return error
        logger.debug("REST request to update FoodOrder : %s", data)
        try:
            dto = FoodOrderIn.model_validate(data)
        except ValidationError as e:
            return _validation_error(e)
        if dto.id is None:
            return _create(dto)
        # an unknown id is inserted under a generated id
        result = _save(dto.to_domain())
        return Response(
            _order_body(result),
            status=status.HTTP_200_OK,
            headers=entity_update_alert(ENTITY_NAME, str(result.id)),
        )


class FoodOrderCartView(ScopedThrottleMixin, APIView):
    """Place an order from a cart and issue its kitchen ticket."""

    def post(self, request):
        """Create an order and a ticket from an ``OrderDTO``.

        Args:
            request (Request): DRF request with JSON body and optional
                ``Idempotency-Key`` header.

        Returns:
            Response: One of the following responses.
            - 201 with the ticket and ``Location: /api/tickets/{id}``.
            - 400 with a ``wrongparam`` failure alert when the payment info
              is empty, the food joint id is not positive or there are no
              items.
            - Stored status/body with ``Idempotent-Replay: true`` when the
              same key and payload are retried.
            - 409 when the same key is reused with a different payload, or
              while the first request is still being processed.
        """
        data, error = _read_payload(request, "wrongparam", with_detail=False)
        if error:
            return error
        logger.debug("REST request to createOrder OrderDTO : %s", data)
        try:
            dto = OrderDTO.model_validate(data)
        except ValidationError:
            return Response(
                status=status.HTTP_400_BAD_REQUEST,
                headers=failure_alert(ENTITY_NAME, "wrongparam", "wrong param"),
            )

        idem_key = request.headers.get("Idempotency-Key")
        rec = None
        if idem_key:
            try:
                existing, rec = get_or_create_idempotent(idem_key, data)
            except ValueError:
                return Response(
                    {"detail": "IDEMPOTENCY_CONFLICT"},
                    status=status.HTTP_409_CONFLICT,
                    headers=failure_alert(
                        ENTITY_NAME, "idempotencyconflict", "Idempotency-Key reused with a different payload"
                    ),
                )
            if existing:
                if not rec.response_status:
                    return Response({"detail": "IDEMPOTENCY_IN_PROGRESS"}, status=status.HTTP_409_CONFLICT)
                resp = Response(rec.response_body, status=rec.response_status, headers=rec.response_headers)
                resp["Idempotent-Replay"] = "true"
                return resp

        try:
            # order, ticket and index entry land together or not at all
            with transaction.atomic():
                ticket = providers.get_food_order_service().create_order(dto.to_domain())
        except ValueError as e:
            body = {"detail": str(e)}
            headers = failure_alert(ENTITY_NAME, "wrongparam", str(e))
            if rec:
                finalize(rec, status.HTTP_400_BAD_REQUEST, body, headers)
            return Response(body, status=status.HTTP_400_BAD_REQUEST, headers=headers)
        except Exception:
            # release the key so the client can retry
            if rec:
                rec.delete()
            raise

        body = TicketGoOut.model_validate(ticket).model_dump(mode="json")
        headers = {
            "Location": TICKET_LOCATION.format(ticket.id),
            **entity_creation_alert(ENTITY_NAME, str(ticket.id)),
        }
        if rec:
            finalize(rec, status.HTTP_201_CREATED, body, headers, ticket_id=ticket.id)
        return Response(body, status=status.HTTP_201_CREATED, headers=headers)


class FoodOrderDetailView(ScopedThrottleMixin, APIView):
    def get(self, request, order_id: int):
        logger.debug("REST request to get FoodOrder : %s", order_id)
        order = providers.get_food_order_service().find_one(order_id)
        if order is None:
            return Response(status=status.HTTP_404_NOT_FOUND)
        return Response(_order_body(order), status=status.HTTP_200_OK)

    def delete(self, request, order_id: int):
        logger.debug("REST request to delete FoodOrder : %s", order_id)
        with transaction.atomic():
            providers.get_food_order_service().delete(order_id)
        return Response(status=status.HTTP_200_OK, headers=entity_deletion_alert(ENTITY_NAME, str(order_id)))


class FoodOrderSearchView(ScopedThrottleMixin, APIView):
    read_scope = "food_orders_search"

    def get(self, request):
        """Search food orders with ``?query=``; the parameter is required."""
        query = request.query_params.get("query")
        if query is None:
            return Response({"detail": "QUERY_REQUIRED"}, status=status.HTTP_400_BAD_REQUEST)
        logger.debug("REST request to search FoodOrders for query %s", query)
        orders = providers.get_food_order_service().search(query)
        return Response([_order_body(o) for o in orders])
