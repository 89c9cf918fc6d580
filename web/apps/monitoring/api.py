from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.food_orders.providers import get_search_index


def health_view(_request):
    """Report database and search index health; 503 if either is down."""
    db_ok = False
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        db_ok = True
    except DatabaseError:
        db_ok = False

    search_ok = get_search_index().ping()

    ok = db_ok and search_ok
    code = 200 if ok else 503
    return JsonResponse(
        {"ok": ok, "components": {"db": {"ok": db_ok}, "search": {"ok": search_ok}}},
        status=code,
    )
