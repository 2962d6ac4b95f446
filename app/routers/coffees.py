# app/routers/coffees.py

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app import crud, schemas

router = APIRouter(prefix="/api", tags=["coffees"])


@router.get("/coffees", response_model=List[schemas.CoffeeRead])
def read_coffees(
        roaster: Optional[str] = Query(None),
        roast_level: Optional[str] = Query(None, alias="roastLevel"),
        search: Optional[str] = Query(None),
        in_stock: Optional[bool] = Query(None, alias="inStock"),
        db: Session = Depends(get_db),
):
    return crud.get_coffees(
        db,
        roaster=roaster,
        roast_level=roast_level,
        in_stock=in_stock,
        search=search,
    )


@router.get("/coffees/{coffee_id}", response_model=schemas.CoffeeDetail)
def read_coffee(coffee_id: int, db: Session = Depends(get_db)):
    return crud.get_coffee(db, coffee_id)


@router.post("/coffees", response_model=schemas.CoffeeDetail, status_code=201)
def create_coffee(coffee: schemas.CoffeeCreate, db: Session = Depends(get_db)):
    return crud.create_coffee(db, coffee)


@router.put("/coffees/{coffee_id}", response_model=schemas.CoffeeDetail)
def update_coffee(coffee_id: int, coffee_upd: schemas.CoffeeUpdate, db: Session = Depends(get_db)):
    return crud.update_coffee(db, coffee_id, coffee_upd)


@router.delete("/coffees/{coffee_id}", status_code=204)
def delete_coffee(coffee_id: int, db: Session = Depends(get_db)):
    crud.delete_coffee(db, coffee_id)
    return


@router.get("/roasters", response_model=List[str])
def read_roasters(db: Session = Depends(get_db)):
    return crud.get_all_roasters(db)


@router.get("/roast-levels", response_model=List[str])
def read_roast_levels(db: Session = Depends(get_db)):
    return crud.get_all_roast_levels(db)


@router.get("/price-history/{coffee_id}", response_model=List[schemas.PriceHistoryRead])
def read_price_history(coffee_id: int, db: Session = Depends(get_db)):
    return crud.get_price_history(db, coffee_id)
