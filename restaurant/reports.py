"""
Reports

Every report only counts completed orders. The reductions are plain Python
over already fetched documents so they can be tested without a database.
"""

from collections import defaultdict
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import APIRouter, Depends, Query

from database import get_documents, serialize, utcnow

from .deps import admin_or_manager, get_db, success
from .orders import populate_orders
from .schemas import OrderStatus, UserRole

router = APIRouter(prefix="/api/reports", tags=["reports"], dependencies=[Depends(admin_or_manager)])


def day_range(start: Optional[date] = None, end: Optional[date] = None) -> Tuple[datetime, datetime]:
    today = utcnow().date()
    return datetime.combine(start or today, time.min), datetime.combine(end or start or today, time.max)


def _menu_ref(item: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    ref = item.get("menu_item")
    if isinstance(ref, dict):
        return str(ref.get("_id")), ref
    return str(ref), {}


def daily_sales(orders: List[Dict[str, Any]]) -> Dict[str, Any]:
    by_category = defaultdict(float)
    for order in orders:
        for item in order.get("items", []):
            _, menu_item = _menu_ref(item)
            by_category[menu_item.get("category") or "uncategorized"] += item["subtotal"]
    return {
        "total_sales": round(sum(o["total"] for o in orders), 2),
        "total_orders": len(orders),
        "sales_by_category": {k: round(v, 2) for k, v in by_category.items()},
    }


def waiter_performance(waiters: Iterable[Dict[str, Any]], orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    by_waiter = defaultdict(list)
    for order in orders:
        by_waiter[str(order.get("waiter"))].append(order["total"])

    stats = []
    for waiter in waiters:
        totals = by_waiter.get(str(waiter["_id"]), [])
        total_sales = round(sum(totals), 2)
        stats.append({
            "waiter": {"id": str(waiter["_id"]), "name": waiter.get("name")},
            "total_orders": len(totals),
            "total_sales": total_sales,
            "average_order_value": round(total_sales / len(totals), 2) if totals else 0,
        })
    return stats


def inventory_stats(menu_items: Iterable[Dict[str, Any]], orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    stats = {
        str(m["_id"]): {
            "name": m.get("name"),
            "category": m.get("category"),
            "total_quantity_sold": 0,
            "total_revenue": 0.0,
        }
        for m in menu_items
    }
    for order in orders:
        for item in order.get("items", []):
            item_id, _ = _menu_ref(item)
            if item_id in stats:
                stats[item_id]["total_quantity_sold"] += item["quantity"]
                stats[item_id]["total_revenue"] = round(stats[item_id]["total_revenue"] + item["subtotal"], 2)
    return list(stats.values())


def monthly_revenue(orders: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Twelve rows keyed by month number, months without sales zero filled."""
    totals = defaultdict(list)
    for order in orders:
        totals[order["created_at"].month].append(order["total"])
    rows = []
    for month in range(1, 13):
        values = totals.get(month, [])
        revenue = round(sum(values), 2)
        rows.append({
            "_id": month,
            "total_revenue": revenue,
            "total_orders": len(values),
            "average_order_value": round(revenue / len(values), 2) if values else 0,
        })
    return rows


def _completed_between(db, start: datetime, end: datetime) -> List[Dict[str, Any]]:
    return get_documents(db, "order", {
        "status": OrderStatus.COMPLETED.value,
        "created_at": {"$gte": start, "$lte": end},
    }, sort=[("created_at", 1)])


@router.get("/daily-sales")
def daily_sales_report(day: Optional[date] = Query(None, alias="date"), db=Depends(get_db)):
    start, end = day_range(day)
    orders = populate_orders(db, _completed_between(db, start, end))
    return success(date=start, orders=serialize(orders), **daily_sales(orders))


@router.get("/waiter-performance")
def waiter_performance_report(start_date: Optional[date] = None, end_date: Optional[date] = None, db=Depends(get_db)):
    start, end = day_range(start_date, end_date)
    waiters = get_documents(db, "user", {"role": UserRole.WAITER.value}, sort=[("name", 1)])
    stats = waiter_performance(waiters, _completed_between(db, start, end))
    return success(start_date=start, end_date=end, waiter_stats=stats)


@router.get("/inventory")
def inventory_report(start_date: Optional[date] = None, end_date: Optional[date] = None, db=Depends(get_db)):
    start, end = day_range(start_date, end_date)
    menu_items = get_documents(db, "menu_item", sort=[("name", 1)])
    stats = inventory_stats(menu_items, _completed_between(db, start, end))
    return success(start_date=start, end_date=end, inventory_stats=stats)


@router.get("/monthly-revenue")
def monthly_revenue_report(year: Optional[int] = None, db=Depends(get_db)):
    year = year or utcnow().year
    orders = _completed_between(db, datetime(year, 1, 1), datetime.combine(date(year, 12, 31), time.max))
    return success(year=year, monthly_revenue=monthly_revenue(orders))
