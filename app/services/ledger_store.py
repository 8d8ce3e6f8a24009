# app/services/ledger_store.py
# Role: SQLAlchemy-backed ledger store.
#       The narrow query contract the reporting core consumes (listing, "last fuel
#       fill", "last trip"), the single-record inserts, and the reference-data
#       operations (users, vehicles, categories, counterparties).
#
# Every failing database call is rolled back and re-raised as StoreError.
# Nothing here retries: inserts are not idempotent.

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import config
from app.errors import NotFoundError, StoreError, ValidationError
from app.services.fuel_economy import is_fuel_category
from app.services.records import (
    EXPENSE,
    INCOME,
    TRANSACTION_KINDS,
    CategoryRecord,
    CounterpartyRecord,
    ExpenseDetailInput,
    ExpenseDetailRecord,
    IncomeDetailInput,
    IncomeDetailRecord,
    TransactionEdit,
    TransactionInput,
    TransactionRecord,
)
from app.services.validation import check_currency
from models import (
    Company,
    Currency,
    Customer,
    EnergyStation,
    Expense,
    ExpenseType,
    Income,
    IncomeType,
    User,
    Vehicle,
    VehicleTransaction,
)

logger = logging.getLogger(__name__)

CATEGORY_MODELS = {
    EXPENSE: ExpenseType,
    INCOME: IncomeType,
}

COUNTERPARTY_MODELS = {
    "energy_station": EnergyStation,
    "company": Company,
    "customer": Customer,
}


# -------------------------------------------------------------------
# Row -> record conversion
# -------------------------------------------------------------------

def category_to_record(kind: str, row) -> CategoryRecord:
    is_fuel = is_fuel_category(row.name, row.is_fuel) if kind == EXPENSE else False
    return CategoryRecord(
        id=row.id,
        kind=kind,
        name=row.name,
        is_custom=bool(row.is_custom),
        user_id=row.user_id,
        is_active=bool(row.is_active),
        is_fuel=is_fuel,
    )


def _transaction_to_record(row) -> TransactionRecord:
    tx: VehicleTransaction = row.VehicleTransaction
    is_fuel = tx.transaction_type == EXPENSE and is_fuel_category(row.expense_type_name, row.expense_type_is_fuel)

    return TransactionRecord(
        id=tx.id,
        vehicle_id=tx.vehicle_id,
        transaction_type=tx.transaction_type,
        amount=tx.amount,
        currency=tx.currency,
        transaction_date=tx.transaction_date,
        default_currency=tx.default_currency,
        foreign_currency=tx.foreign_currency,
        exchange_rate=tx.exchange_rate,
        expense_type_id=tx.expense_type_id,
        income_type_id=tx.income_type_id,
        energy_station_id=tx.energy_station_id,
        company_id=tx.company_id,
        customer_id=tx.customer_id,
        description=tx.description,
        odometer_reading=tx.odometer_reading,
        created_at=tx.created_at,
        updated_at=tx.updated_at,
        vehicle_name=row.vehicle_name,
        expense_type_name=row.expense_type_name,
        income_type_name=row.income_type_name,
        is_fuel=is_fuel,
        fuel_unit_price=row.fuel_unit_price,
        start_odometer=row.start_odometer,
        end_odometer=row.end_odometer,
        notes=row.expense_notes if tx.transaction_type == EXPENSE else row.income_notes,
    )


class LedgerStore:
    """
    Store handle over one SQLAlchemy session.

    Typical usage (see app/deps.py:get_store):
        store = LedgerStore(db)
        rows = store.list_transactions(vehicle_id, limit=5)
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------------------------------------------------------------
    # Session guards
    # ---------------------------------------------------------------

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """Roll back and convert database failures into StoreError."""
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("[store] %s failed: %r", operation, e)
            raise StoreError(operation, str(e)) from e

    # ---------------------------------------------------------------
    # Lookups used as integrity checks
    # ---------------------------------------------------------------

    def _require(self, model, entity_id, entity: str):
        with self._guard(f"get {entity}"):
            obj = self.db.get(model, entity_id)
        if obj is None:
            raise NotFoundError(entity, entity_id)
        return obj

    def _category_model(self, kind: str):
        model = CATEGORY_MODELS.get(kind)
        if model is None:
            raise ValidationError(f"Unknown category kind: {kind!r}", field="kind", value=kind)
        return model

    def _counterparty_model(self, kind: str):
        model = COUNTERPARTY_MODELS.get(kind)
        if model is None:
            raise ValidationError(f"Unknown counterparty kind: {kind!r}", field="kind", value=kind)
        return model

    # ---------------------------------------------------------------
    # Users
    # ---------------------------------------------------------------

    def create_user(self, email: Optional[str] = None, default_currency: Optional[str] = None) -> User:
        user = User(email=email, default_currency=default_currency or config.DEFAULT_CURRENCY)
        with self._guard("create user"):
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        logger.info("[store] created user id=%s", user.id)
        return user

    def get_user(self, user_id: int) -> User:
        return self._require(User, user_id, "user")

    def first_user(self) -> Optional[User]:
        with self._guard("first user"):
            return self.db.query(User).order_by(User.id).first()

    def update_user(self, user_id: int, email: Optional[str] = None, default_currency: Optional[str] = None) -> User:
        user = self.get_user(user_id)
        if email is not None:
            user.email = email
        if default_currency is not None:
            user.default_currency = default_currency
        with self._guard("update user"):
            self.db.commit()
            self.db.refresh(user)
        return user

    # ---------------------------------------------------------------
    # Vehicles
    # ---------------------------------------------------------------

    def create_vehicle(
        self,
        user_id: int,
        name: str,
        fuel_type: str = "gasoline",
        is_income_generating: bool = False,
        license_plate: Optional[str] = None,
        model: Optional[str] = None,
    ) -> Vehicle:
        self.get_user(user_id)
        if not (name or "").strip():
            raise ValidationError("Vehicle name is required", field="name")

        vehicle = Vehicle(
            user_id=user_id,
            name=name.strip(),
            fuel_type=fuel_type,
            is_income_generating=is_income_generating,
            license_plate=license_plate or None,
            model=model or None,
        )
        with self._guard("create vehicle"):
            self.db.add(vehicle)
            self.db.commit()
            self.db.refresh(vehicle)
        logger.info("[store] created vehicle id=%s for user=%s", vehicle.id, user_id)
        return vehicle

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = self._require(Vehicle, vehicle_id, "vehicle")
        if not vehicle.is_active:
            raise NotFoundError("vehicle", vehicle_id)
        return vehicle

    def list_user_vehicles(self, user_id: int) -> List[Vehicle]:
        with self._guard("list vehicles"):
            return (
                self.db.query(Vehicle)
                .filter(Vehicle.user_id == user_id, Vehicle.is_active.is_(True))
                .order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
                .all()
            )

    def deactivate_vehicle(self, vehicle_id: int) -> None:
        vehicle = self.get_vehicle(vehicle_id)
        vehicle.is_active = False
        with self._guard("deactivate vehicle"):
            self.db.commit()
        logger.info("[store] deactivated vehicle id=%s", vehicle_id)

    # ---------------------------------------------------------------
    # Transactions: reads
    # ---------------------------------------------------------------

    def _joined_query(self):
        return (
            self.db.query(
                VehicleTransaction,
                Vehicle.name.label("vehicle_name"),
                ExpenseType.name.label("expense_type_name"),
                ExpenseType.is_fuel.label("expense_type_is_fuel"),
                IncomeType.name.label("income_type_name"),
                Expense.fuel_unit_price.label("fuel_unit_price"),
                Expense.notes.label("expense_notes"),
                Income.start_odometer.label("start_odometer"),
                Income.end_odometer.label("end_odometer"),
                Income.notes.label("income_notes"),
            )
            .outerjoin(Vehicle, VehicleTransaction.vehicle_id == Vehicle.id)
            .outerjoin(ExpenseType, VehicleTransaction.expense_type_id == ExpenseType.id)
            .outerjoin(IncomeType, VehicleTransaction.income_type_id == IncomeType.id)
            .outerjoin(Expense, Expense.transaction_id == VehicleTransaction.id)
            .outerjoin(Income, Income.transaction_id == VehicleTransaction.id)
        )

    @staticmethod
    def _newest_first(query):
        return query.order_by(
            VehicleTransaction.transaction_date.desc(),
            VehicleTransaction.created_at.desc(),
            VehicleTransaction.id.desc(),
        )

    def list_transactions(
        self,
        vehicle_id: int,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[TransactionRecord]:
        """
        Vehicle ledger, most recent first (transaction_date, then created_at).
        """
        query = self._newest_first(
            self._joined_query().filter(VehicleTransaction.vehicle_id == vehicle_id)
        )
        if limit:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)

        with self._guard("list transactions"):
            rows = query.all()
        return [_transaction_to_record(row) for row in rows]

    def get_transaction(self, transaction_id: int) -> TransactionRecord:
        with self._guard("get transaction"):
            row = self._joined_query().filter(VehicleTransaction.id == transaction_id).first()
        if row is None:
            raise NotFoundError("transaction", transaction_id)
        return _transaction_to_record(row)

    def last_fuel_transaction(self, vehicle_id: int) -> Optional[TransactionRecord]:
        """
        Most recent fuel expense with an odometer reading, or None.
        """
        query = self._newest_first(
            self._joined_query().filter(
                VehicleTransaction.vehicle_id == vehicle_id,
                VehicleTransaction.transaction_type == EXPENSE,
                VehicleTransaction.odometer_reading.isnot(None),
            )
        )
        with self._guard("last fuel transaction"):
            rows = query.all()

        # Fuel resolution may depend on the category name, so it is decided here
        for row in rows:
            record = _transaction_to_record(row)
            if record.is_fuel and record.odometer_reading:
                return record
        return None

    def last_income_transaction(self, vehicle_id: int) -> Optional[TransactionRecord]:
        """
        Most recent income with a recorded trip end odometer, or None.
        """
        query = self._newest_first(
            self._joined_query().filter(
                VehicleTransaction.vehicle_id == vehicle_id,
                VehicleTransaction.transaction_type == INCOME,
                Income.end_odometer.isnot(None),
            )
        )
        with self._guard("last income transaction"):
            row = query.first()
        return _transaction_to_record(row) if row is not None else None

    # ---------------------------------------------------------------
    # Transactions: writes
    # ---------------------------------------------------------------

    def _build_transaction(self, data: TransactionInput) -> VehicleTransaction:
        """
        Check references and invariants, then build (not add) the ORM row.
        """
        if data.transaction_type not in TRANSACTION_KINDS:
            raise ValidationError(
                f"Unknown transaction type: {data.transaction_type!r}",
                field="transaction_type",
                value=data.transaction_type,
            )
        if data.amount is None or data.amount < 0:
            raise ValidationError("Amount must be a non-negative number", field="amount", value=data.amount)

        self.get_vehicle(data.vehicle_id)

        if data.transaction_type == EXPENSE:
            if data.expense_type_id is None or data.income_type_id is not None:
                raise ValidationError("An expense needs an expense type and no income type", field="expense_type_id")
            self._require(ExpenseType, data.expense_type_id, "expense type")
        else:
            if data.income_type_id is None or data.expense_type_id is not None:
                raise ValidationError("An income needs an income type and no expense type", field="income_type_id")
            self._require(IncomeType, data.income_type_id, "income type")

        if data.energy_station_id is not None:
            self._require(EnergyStation, data.energy_station_id, "energy station")
        if data.company_id is not None:
            self._require(Company, data.company_id, "company")
        if data.customer_id is not None:
            self._require(Customer, data.customer_id, "customer")

        foreign_currency = check_currency(data.currency, data.default_currency, data.exchange_rate)

        return VehicleTransaction(
            vehicle_id=data.vehicle_id,
            transaction_type=data.transaction_type,
            amount=float(data.amount),
            currency=data.currency,
            default_currency=data.default_currency,
            foreign_currency=foreign_currency,
            exchange_rate=data.exchange_rate if foreign_currency else None,
            expense_type_id=data.expense_type_id,
            income_type_id=data.income_type_id,
            energy_station_id=data.energy_station_id,
            company_id=data.company_id,
            customer_id=data.customer_id,
            description=data.description or None,
            transaction_date=data.transaction_date or datetime.now(),
            odometer_reading=data.odometer_reading,
        )

    def create_transaction(self, data: TransactionInput) -> TransactionRecord:
        """Single insert of a ledger row (no detail)."""
        tx = self._build_transaction(data)
        with self._guard("create transaction"):
            self.db.add(tx)
            self.db.commit()
            self.db.refresh(tx)
        logger.info("[store] created %s transaction id=%s vehicle=%s", tx.transaction_type, tx.id, tx.vehicle_id)
        return self.get_transaction(tx.id)

    def _require_transaction_of_kind(self, transaction_id: int, kind: str) -> VehicleTransaction:
        tx = self._require(VehicleTransaction, transaction_id, "transaction")
        if tx.transaction_type != kind:
            raise ValidationError(
                f"Transaction {transaction_id} is not an {kind}",
                field="transaction_id",
                value=transaction_id,
            )
        return tx

    def create_expense_detail(self, data: ExpenseDetailInput) -> ExpenseDetailRecord:
        self._require_transaction_of_kind(data.transaction_id, EXPENSE)
        self._require(ExpenseType, data.expense_type_id, "expense type")

        detail = Expense(
            transaction_id=data.transaction_id,
            expense_type_id=data.expense_type_id,
            fuel_unit_price=data.fuel_unit_price,
            notes=data.notes or None,
        )
        with self._guard("create expense detail"):
            self.db.add(detail)
            self.db.commit()
            self.db.refresh(detail)
        return ExpenseDetailRecord(
            id=detail.id,
            transaction_id=detail.transaction_id,
            expense_type_id=detail.expense_type_id,
            fuel_unit_price=detail.fuel_unit_price,
            notes=detail.notes,
        )

    def create_income_detail(self, data: IncomeDetailInput) -> IncomeDetailRecord:
        self._require_transaction_of_kind(data.transaction_id, INCOME)
        self._require(IncomeType, data.income_type_id, "income type")

        detail = Income(
            transaction_id=data.transaction_id,
            income_type_id=data.income_type_id,
            start_odometer=data.start_odometer,
            end_odometer=data.end_odometer,
            notes=data.notes or None,
        )
        with self._guard("create income detail"):
            self.db.add(detail)
            self.db.commit()
            self.db.refresh(detail)
        return IncomeDetailRecord(
            id=detail.id,
            transaction_id=detail.transaction_id,
            income_type_id=detail.income_type_id,
            start_odometer=detail.start_odometer,
            end_odometer=detail.end_odometer,
            notes=detail.notes,
        )

    def record_expense(
        self,
        data: TransactionInput,
        fuel_unit_price: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> TransactionRecord:
        """
        Transaction + expense detail as one unit of work: either both rows
        are committed or neither is.
        """
        if data.transaction_type != EXPENSE:
            raise ValidationError("record_expense needs an expense", field="transaction_type")
        tx = self._build_transaction(data)

        with self._guard("record expense"):
            self.db.add(tx)
            self.db.flush()
            self.db.add(
                Expense(
                    transaction_id=tx.id,
                    expense_type_id=tx.expense_type_id,
                    fuel_unit_price=fuel_unit_price,
                    notes=notes or None,
                )
            )
            self.db.commit()
        logger.info("[store] recorded expense id=%s vehicle=%s amount=%s %s", tx.id, tx.vehicle_id, tx.amount, tx.currency)
        return self.get_transaction(tx.id)

    def record_income(
        self,
        data: TransactionInput,
        start_odometer: Optional[int] = None,
        end_odometer: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> TransactionRecord:
        """Transaction + income detail as one unit of work."""
        if data.transaction_type != INCOME:
            raise ValidationError("record_income needs an income", field="transaction_type")
        tx = self._build_transaction(data)

        with self._guard("record income"):
            self.db.add(tx)
            self.db.flush()
            self.db.add(
                Income(
                    transaction_id=tx.id,
                    income_type_id=tx.income_type_id,
                    start_odometer=start_odometer,
                    end_odometer=end_odometer,
                    notes=notes or None,
                )
            )
            self.db.commit()
        logger.info("[store] recorded income id=%s vehicle=%s amount=%s %s", tx.id, tx.vehicle_id, tx.amount, tx.currency)
        return self.get_transaction(tx.id)

    def update_transaction(self, transaction_id: int, edit: TransactionEdit) -> TransactionRecord:
        """
        Narrow edit path: amount, currency/rate, description, odometer and the
        fuel unit price. Kind and category never change.
        """
        tx = self._require(VehicleTransaction, transaction_id, "transaction")
        current = self.get_transaction(transaction_id)

        # Validate before touching the row so a rejected edit leaves the session clean
        if edit.amount is not None and edit.amount < 0:
            raise ValidationError("Amount must be a non-negative number", field="amount", value=edit.amount)
        currency = edit.currency or tx.currency
        rate = edit.exchange_rate if edit.exchange_rate is not None else tx.exchange_rate
        foreign_currency = check_currency(currency, tx.default_currency, rate)

        if edit.amount is not None:
            tx.amount = float(edit.amount)
        tx.currency = currency
        tx.foreign_currency = foreign_currency
        tx.exchange_rate = rate if foreign_currency else None

        if edit.description is not None or "description" in edit.clear:
            tx.description = edit.description or None
        if edit.odometer_reading is not None or "odometer_reading" in edit.clear:
            tx.odometer_reading = edit.odometer_reading

        with self._guard("update transaction"):
            if current.is_fuel:
                detail = self.db.query(Expense).filter(Expense.transaction_id == transaction_id).first()
                if detail is not None:
                    if edit.fuel_unit_price is not None or "fuel_unit_price" in edit.clear:
                        detail.fuel_unit_price = edit.fuel_unit_price
                    # Fuel notes mirror the description
                    detail.notes = tx.description
            self.db.commit()
        logger.info("[store] updated transaction id=%s", transaction_id)
        return self.get_transaction(transaction_id)

    def delete_transaction(self, transaction_id: int) -> None:
        tx = self._require(VehicleTransaction, transaction_id, "transaction")
        with self._guard("delete transaction"):
            self.db.query(Expense).filter(Expense.transaction_id == transaction_id).delete(synchronize_session=False)
            self.db.query(Income).filter(Income.transaction_id == transaction_id).delete(synchronize_session=False)
            self.db.delete(tx)
            self.db.commit()
        logger.info("[store] deleted transaction id=%s", transaction_id)

    # ---------------------------------------------------------------
    # Categories
    # ---------------------------------------------------------------

    def list_categories(self, kind: str, user_id: Optional[int] = None) -> List[CategoryRecord]:
        """
        Active global categories plus the user's custom ones,
        global first, then alphabetical.
        """
        model = self._category_model(kind)
        query = self.db.query(model).filter(model.is_active.is_(True))
        if user_id:
            query = query.filter(or_(model.is_custom.is_(False), model.user_id == user_id))
        else:
            query = query.filter(model.is_custom.is_(False))

        with self._guard("list categories"):
            rows = query.order_by(model.is_custom.asc(), model.name.asc()).all()
        return [category_to_record(kind, row) for row in rows]

    def get_category(self, kind: str, category_id: int) -> CategoryRecord:
        model = self._category_model(kind)
        row = self._require(model, category_id, f"{kind} type")
        return category_to_record(kind, row)

    def create_category(
        self,
        kind: str,
        name: str,
        user_id: int,
        is_fuel: Optional[bool] = None,
    ) -> CategoryRecord:
        model = self._category_model(kind)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required", field="name")
        self.get_user(user_id)

        row = model(name=name, user_id=user_id, is_custom=True, is_active=True)
        if kind == EXPENSE:
            row.is_fuel = is_fuel
        with self._guard("create category"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        logger.info("[store] created %s type id=%s name=%r", kind, row.id, row.name)
        return category_to_record(kind, row)

    def _editable_category(self, kind: str, category_id: int, user_id: Optional[int]):
        """Only custom categories are editable, and only by their owner."""
        model = self._category_model(kind)
        row = self._require(model, category_id, f"{kind} type")
        if not row.is_custom:
            raise ValidationError("Global categories cannot be changed", field="category_id", value=category_id)
        if user_id is not None and row.user_id != user_id:
            raise NotFoundError(f"{kind} type", category_id)
        return row

    def rename_category(self, kind: str, category_id: int, name: str, user_id: Optional[int] = None) -> CategoryRecord:
        row = self._editable_category(kind, category_id, user_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required", field="name")

        row.name = name
        with self._guard("rename category"):
            self.db.commit()
            self.db.refresh(row)
        return category_to_record(kind, row)

    def delete_category(self, kind: str, category_id: int, user_id: Optional[int] = None) -> str:
        """
        Deactivate a category that transactions still reference, hard delete
        it otherwise. Returns "deactivated" or "deleted".
        """
        row = self._editable_category(kind, category_id, user_id)
        ref_column = (
            VehicleTransaction.expense_type_id if kind == EXPENSE else VehicleTransaction.income_type_id
        )

        with self._guard("delete category"):
            in_use = self.db.query(VehicleTransaction.id).filter(ref_column == category_id).first() is not None
            if in_use:
                row.is_active = False
                outcome = "deactivated"
            else:
                self.db.delete(row)
                outcome = "deleted"
            self.db.commit()
        logger.info("[store] %s %s type id=%s", outcome, kind, category_id)
        return outcome

    # ---------------------------------------------------------------
    # Counterparties (energy stations, companies, customers)
    # ---------------------------------------------------------------

    def create_counterparty(
        self,
        kind: str,
        user_id: int,
        name: str,
        geo_coordinate: Optional[str] = None,
    ) -> CounterpartyRecord:
        model = self._counterparty_model(kind)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        self.get_user(user_id)

        row = model(user_id=user_id, name=name, geo_coordinate=geo_coordinate or None)
        with self._guard(f"create {kind}"):
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return CounterpartyRecord(id=row.id, kind=kind, user_id=row.user_id, name=row.name, geo_coordinate=row.geo_coordinate)

    def list_counterparties(self, kind: str, user_id: int) -> List[CounterpartyRecord]:
        model = self._counterparty_model(kind)
        with self._guard(f"list {kind}"):
            rows = (
                self.db.query(model)
                .filter(model.user_id == user_id, model.is_active.is_(True))
                .order_by(model.name.asc())
                .all()
            )
        return [
            CounterpartyRecord(id=r.id, kind=kind, user_id=r.user_id, name=r.name, geo_coordinate=r.geo_coordinate)
            for r in rows
        ]

    # ---------------------------------------------------------------
    # Currencies
    # ---------------------------------------------------------------

    def list_currencies(self) -> List[str]:
        with self._guard("list currencies"):
            return [row.code for row in self.db.query(Currency).order_by(Currency.code.asc()).all()]
