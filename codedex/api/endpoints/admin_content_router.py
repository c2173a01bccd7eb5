import logging
from typing import List

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from codedex.api.dependencies import get_db, require_admin
from codedex.crud import cms_crud
from codedex.schemas.cms import cms_schema

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


# --- Settings ---
@router.get("/settings", response_model=List[cms_schema.SettingOut])
def list_settings(db: Session = Depends(get_db)):
    return cms_crud.list_settings(db)


@router.put("/settings", response_model=List[cms_schema.SettingOut])
def update_settings(
    items: List[cms_schema.SettingIn] = Body(...),
    db: Session = Depends(get_db),
):
    if not items:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a non-empty list of settings",
        )

    settings_out = cms_crud.upsert_settings(db, items)
    logger.info("Updated %s site settings", len(items))
    return settings_out


# --- Static pages ---
@router.get("/static-pages", response_model=List[cms_schema.StaticPageOut])
def list_static_pages(db: Session = Depends(get_db)):
    return cms_crud.list_static_pages(db)


@router.get("/static-pages/{slug}", response_model=cms_schema.StaticPageOut)
def read_static_page(slug: str, db: Session = Depends(get_db)):
    page = cms_crud.get_static_page(db, slug)
    if page is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    return page


@router.put("/static-pages/{slug}", response_model=cms_schema.StaticPageOut)
def upsert_static_page(slug: str, payload: cms_schema.StaticPageIn, db: Session = Depends(get_db)):
    page = cms_crud.upsert_static_page(db, slug, payload.title, payload.content)
    logger.info("Static page %s saved", slug)
    return page
