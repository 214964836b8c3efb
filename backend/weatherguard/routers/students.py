"""Students router."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from weatherguard.database import get_db
from weatherguard.dependencies import get_store
from weatherguard.schemas.booking import CreateStudent, StudentResponse
from weatherguard.services.booking_store import BookingStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[StudentResponse])
async def list_students(
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
):
    return await store.list_students(db)


@router.post("", status_code=201, response_model=StudentResponse)
async def create_student(
    req: CreateStudent,
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
):
    student = await store.create_student(
        db,
        name=req.name,
        email=req.email,
        phone=req.phone,
        training_level=req.training_level,
    )
    logger.info(f"Student {student.id} created ({student.training_level.value})")
    return student
