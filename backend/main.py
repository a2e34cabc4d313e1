import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.errors import PyMongoError

from auth import TokenService, Unauthorized, get_token_service, verify_jwt
from config import Settings
from database import (
    NEWEST_FIRST,
    Database,
    delete_ack,
    doc_to_dict,
    docs_to_list,
    insert_ack,
    oid,
    update_ack,
)
from media import MAX_IMAGES, MediaRelay, MediaUploadError
from query_builder import ProductQueryParams, build_product_query, run_product_query
from schemas import (
    CartCreate,
    CartQuantityUpdate,
    ProductCreate,
    ProductUpdate,
    RoleUpdate,
    StatusUpdate,
    UserCreate,
    WishlistCreate,
    now,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_media(request: Request) -> MediaRelay:
    return request.app.state.media


@router.get("/", response_class=PlainTextResponse)
def root():
    return "Gadget Galaxy is running"


@router.get("/test")
def test_database(request: Request, db: Database = Depends(get_db)):
    settings = request.app.state.settings
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if settings.database_url_configured else "❌ Not Set",
        "database_name": db.name,
        "collections": [],
    }
    try:
        response["collections"] = db.db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
    except PyMongoError as e:
        response["database"] = f"⚠️ Connected but Error: {str(e)[:50]}"
    return response


# ========== AUTH ==========
@router.post("/jwt")
def issue_token(payload: Dict[str, Any] = Body(...), tokens: TokenService = Depends(get_token_service)):
    return {"token": tokens.issue(payload)}


# ========== IMAGES ==========
@router.post("/upload-images")
def upload_images(images: Optional[List[UploadFile]] = File(None), media: MediaRelay = Depends(get_media)):
    images = images or []
    if len(images) > MAX_IMAGES:
        raise HTTPException(400, f"At most {MAX_IMAGES} images per upload")
    files = [(f.filename or "image", f.file.read(), f.content_type) for f in images]
    try:
        urls = media.upload_many(files)
    except MediaUploadError as e:
        logger.error("Error uploading images: %s", e)
        return JSONResponse(status_code=500, content={"error": "Error uploading images"})
    return {"images": urls}


# ========== USERS ==========
@router.get("/users")
def list_users(db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    return docs_to_list(db.users.find().sort(NEWEST_FIRST))


@router.get("/users/{email}")
def get_user(email: str, db: Database = Depends(get_db)):
    user = db.users.find_one({"email": email})
    if user is None:
        return {"status": 404}
    return doc_to_dict(user)


@router.post("/users")
def create_user(body: UserCreate, db: Database = Depends(get_db)):
    if db.users.find_one({"email": body.email}):
        return {"message": "user already exists"}
    stamp = now()
    user = {**body.model_dump(), "createdAt": stamp, "updatedAt": stamp}
    return insert_ack(db.users.insert_one(user))


@router.patch("/users/role/{user_id}")
def update_user_role(user_id: str, body: RoleUpdate, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    res = db.users.update_one({"_id": oid(user_id)}, {"$set": {"role": body.role, "updatedAt": now()}})
    return update_ack(res)


@router.patch("/users/status/{user_id}")
def update_user_status(user_id: str, body: StatusUpdate, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    res = db.users.update_one({"_id": oid(user_id)}, {"$set": {"status": body.status, "updatedAt": now()}})
    return update_ack(res)


@router.delete("/users/{user_id}")
def delete_user(user_id: str, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    return delete_ack(db.users.delete_one({"_id": oid(user_id)}))


# ========== CATEGORY ==========
@router.get("/category")
def list_categories(db: Database = Depends(get_db)):
    return docs_to_list(db.category.find().sort(NEWEST_FIRST))


# ========== PRODUCTS ==========
@router.get("/products")
def list_products(db: Database = Depends(get_db)):
    return docs_to_list(db.products.find().sort(NEWEST_FIRST))


@router.get("/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    # a miss is returned as null, not 404
    return doc_to_dict(db.products.find_one({"_id": oid(product_id)}))


@router.get("/all-product")
def search_products(params: ProductQueryParams = Depends(), db: Database = Depends(get_db)):
    return run_product_query(db.products, build_product_query(params))


@router.post("/products")
def create_product(body: ProductCreate, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    stamp = now()
    product = {**body.model_dump(), "createdAt": stamp, "updatedAt": stamp}
    return insert_ack(db.products.insert_one(product))


@router.patch("/products/{product_id}")
def update_product(product_id: str, body: ProductUpdate, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    changes = body.model_dump(exclude_unset=True)
    changes["updatedAt"] = now()
    return update_ack(db.products.update_one({"_id": oid(product_id)}, {"$set": changes}))


@router.delete("/products/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    query = {"_id": oid(product_id)}
    # cart cleanup is best-effort, the product is deleted either way
    try:
        removed = db.carts.delete_many({"productId": product_id})
        logger.info("Removed %d cart entries for product %s", removed.deleted_count, product_id)
    except PyMongoError as e:
        logger.error("Failed to remove cart entries for product %s: %s", product_id, e)
    return delete_ack(db.products.delete_one(query))


# ========== CART ==========
@router.get("/carts/{email}")
def list_cart(email: str, db: Database = Depends(get_db)):
    return docs_to_list(db.carts.find({"email": email}).sort(NEWEST_FIRST))


@router.post("/carts")
def add_to_cart(body: CartCreate, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    item = {**body.model_dump(), "createdAt": now()}
    return insert_ack(db.carts.insert_one(item))


@router.patch("/carts/{cart_id}")
def update_cart_quantity(cart_id: str, body: CartQuantityUpdate, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    return update_ack(db.carts.update_one({"_id": oid(cart_id)}, {"$set": {"quantity": body.quantity}}))


@router.delete("/carts/{cart_id}")
def remove_from_cart(cart_id: str, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    return delete_ack(db.carts.delete_one({"_id": oid(cart_id)}))


# ========== WISHLIST ==========
@router.get("/wishlist/{email}")
def list_wishlist(email: str, db: Database = Depends(get_db)):
    return docs_to_list(db.wishlist.find({"email": email}).sort(NEWEST_FIRST))


@router.post("/wishlist")
def add_wishlist(body: WishlistCreate, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    item = {**body.model_dump(), "createdAt": now()}
    return insert_ack(db.wishlist.insert_one(item))


@router.delete("/wishlist/{wishlist_id}")
def remove_wishlist(wishlist_id: str, db: Database = Depends(get_db), _: dict = Depends(verify_jwt)):
    return delete_ack(db.wishlist.delete_one({"_id": oid(wishlist_id)}))


# ========== APP ==========
def unauthorized_handler(request: Request, exc: Unauthorized):
    return JSONResponse(status_code=401, content={"error": True, "message": "unauthorized access"})


def storage_error_handler(request: Request, exc: PyMongoError):
    logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Server Error"})


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    tokens: Optional[TokenService] = None,
    media: Optional[MediaRelay] = None,
) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not app.state.tokens.secret:
            logger.warning("ACCESS_TOKEN_SECRET is not configured, guarded routes will reject every request")
        if app.state.db is None:
            app.state.db = Database.from_settings(settings)
            app.state.db.ping()
        try:
            yield
        finally:
            app.state.db.close()

    app = FastAPI(title="Gadget Galaxy API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = database
    app.state.tokens = tokens or TokenService(settings.token_secret, settings.token_expires_days)
    app.state.media = media or MediaRelay(
        settings.cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
        timeout=settings.media_timeout,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Unauthorized, unauthorized_handler)
    app.add_exception_handler(PyMongoError, storage_error_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = Settings().port
    uvicorn.run(app, host="0.0.0.0", port=port)
