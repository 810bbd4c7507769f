from fastapi import APIRouter, Request

router = APIRouter(prefix="/health", tags=["health"])

@router.get("")
def health():
    return {"ok": True}

@router.get("/store")
def store_health(request: Request):
    store = request.app.state.store
    return {
        "ok": True,
        "data_dir": str(store.root),
        "suppressed": store.suppressed,
        "record_buckets": len(list(store.records_dir.glob("*.json"))),
        "hourly_buckets": len(list(store.hourly_dir.glob("*.json"))),
    }
