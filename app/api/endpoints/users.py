from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.schemas.common import envelope
from app.core.schemas.user import UserCreate, UserRead, UserUpdate
from app.database.base import get_db
from app.database.models import Cookbook, Recipe, User
from app.services.repositories.base import BaseRepository

router = APIRouter()


@router.get("/")
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    repository = BaseRepository(db, User)
    users = await repository.get_all(skip=skip, limit=limit, order_by=User.created_at.desc())
    return envelope(
        [UserRead.model_validate(u) for u in users],
        "Users retrieved successfully",
        total=await repository.count(),
    )


@router.post("/", status_code=201)
async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    repository = BaseRepository(db, User)
    if await repository.find_one(email=payload.email):
        raise HTTPException(status_code=400, detail="User with this email already exists")

    user = await repository.create(User(**payload.model_dump()))
    return envelope(UserRead.model_validate(user), "User created successfully")


@router.get("/{user_id}")
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await BaseRepository(db, User).get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return envelope(UserRead.model_validate(user), "User retrieved successfully")


@router.put("/{user_id}")
async def update_user(user_id: str, payload: UserUpdate, db: AsyncSession = Depends(get_db)):
    repository = BaseRepository(db, User)
    if not await repository.exists(user_id):
        raise HTTPException(status_code=404, detail="User not found")

    updates = payload.model_dump(exclude_unset=True)
    if updates.get("email"):
        other = await repository.find_one(email=updates["email"])
        if other and other.id != user_id:
            raise HTTPException(status_code=400, detail="User with this email already exists")

    user = await repository.update(user_id, updates)
    return envelope(UserRead.model_validate(user), "User updated successfully")


@router.delete("/{user_id}")
async def delete_user(user_id: str, db: AsyncSession = Depends(get_db)):
    repository = BaseRepository(db, User)
    if not await repository.exists(user_id):
        raise HTTPException(status_code=404, detail="User not found")

    recipes_count = await BaseRepository(db, Recipe).count({"user_id": user_id})
    cookbooks_count = await BaseRepository(db, Cookbook).count({"user_id": user_id})
    if recipes_count or cookbooks_count:
        raise HTTPException(
            status_code=400,
            detail=(
                f"Cannot delete user. They have {recipes_count} recipe(s) and "
                f"{cookbooks_count} cookbook(s). Please reassign or delete their content first."
            ),
        )

    await repository.delete(user_id)
    return envelope(message="User deleted successfully")
