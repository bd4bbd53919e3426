"""Form options: every closed enumeration with its display label."""

from fastapi import APIRouter

from herbtrace.models.enums import options_table

router = APIRouter()


@router.get("/options")
async def get_options():
    """Values and labels for roles, farming types, plant parts, processing
    types, test types and vedas."""
    return options_table()
