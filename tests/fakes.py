"""
In-memory ledger for service tests.

Mirrors the repository methods the distribution passes call, keeps rows as
transient model instances and restores them when a transaction fails.
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime

from placement_rewards.config.constants import PATH_SEPARATOR
from placement_rewards.models import (
    Config,
    Location,
    PriceChange,
    Reward,
    Trade,
    UserArea,
    UserBalance,
    UserInfo,
    UserRecommend,
)
from placement_rewards.models.enums import LocationStatus, PriceChangeStatus, RewardType, TradeStatus
from placement_rewards.repositories.location_repository import branch_column
from placement_rewards.utils.exceptions import LedgerInvariantError, LookupMissError


class FakeTable:
    """Rows of one model keyed by id."""

    def __init__(self, model) -> None:
        self.model = model
        self.rows: dict[int, object] = {}
        self._next_id = 1
        self._columns = list(model.__table__.columns.keys())

    def insert(self, **fields):
        row = self.model(id=self._next_id, **fields)
        self.rows[row.id] = row
        self._next_id += 1
        return row

    def all(self) -> list:
        return [self.rows[key] for key in sorted(self.rows)]

    def snapshot(self) -> tuple[int, dict[int, tuple[object, dict]]]:
        return self._next_id, {
            key: (row, {column: getattr(row, column) for column in self._columns})
            for key, row in self.rows.items()
        }

    def restore(self, state: tuple[int, dict[int, tuple[object, dict]]]) -> None:
        self._next_id, rows = state
        self.rows = {}
        for key, (row, values) in rows.items():
            for column, value in values.items():
                setattr(row, column, value)
            self.rows[key] = row


class FakeLocationRepository:
    def __init__(self) -> None:
        self.table = FakeTable(Location)

    async def get_by_id(self, id: int, for_update: bool = False) -> Location | None:
        return self.table.rows.get(id)

    async def create(self, **fields) -> Location:
        fields.setdefault("created_at", datetime.now(UTC))
        fields.setdefault("updated_at", fields["created_at"])
        fields.setdefault("stop_date", None)
        return self.table.insert(**fields)

    async def list_running(self) -> list[Location]:
        return [row for row in self.table.all() if row.status == LocationStatus.RUNNING.value]

    async def list_by_user(self, user_id: int) -> list[Location]:
        return [row for row in self.table.all() if row.user_id == user_id]

    async def list_running_user_ids(self) -> list[int]:
        return sorted({row.user_id for row in await self.list_running()})

    async def get_running_by_user(self, user_id: int) -> Location | None:
        running = [
            row for row in await self.list_by_user(user_id)
            if row.status == LocationStatus.RUNNING.value
        ]
        return running[-1] if running else None

    async def list_created_between(self, start: datetime, end: datetime) -> list[Location]:
        return [row for row in self.table.all() if start <= row.created_at < end]

    async def sum_usdt_created_between(self, start: datetime, end: datetime) -> int:
        return sum(row.usdt for row in await self.list_created_between(start, end))

    async def update_capacity_and_status(
        self,
        location_id: int,
        status: str,
        delta: int,
        new_max_delta: int,
        secondary_delta: int,
        stop_date: datetime | None = None,
    ) -> Location:
        row = self.table.rows.get(location_id)
        if row is None:
            raise LookupMissError(f"Location {location_id} not found")
        row.status = status
        row.current += delta
        row.current_max_new += new_max_delta
        row.current_amount_b += secondary_delta
        if stop_date is not None:
            row.stop_date = stop_date
        return row

    async def subtract_ancestor_totals(
        self, ancestor_id: int, branch_index: int, amount: int
    ) -> Location:
        column = branch_column(branch_index)
        row = self.table.rows.get(ancestor_id)
        if row is None:
            raise LookupMissError(f"Ancestor location {ancestor_id} not found")
        if getattr(row, column) < amount:
            raise LedgerInvariantError(
                f"Branch {branch_index} total of location {ancestor_id} would drop below zero"
            )
        setattr(row, column, getattr(row, column) - amount)
        return row

    async def add_ancestor_totals(
        self, ancestor_id: int, branch_index: int, amount: int
    ) -> Location:
        column = branch_column(branch_index)
        row = self.table.rows.get(ancestor_id)
        if row is None:
            raise LookupMissError(f"Ancestor location {ancestor_id} not found")
        setattr(row, column, getattr(row, column) + amount)
        return row

    async def raise_last_level(self, location_id: int, level: int) -> None:
        row = self.table.rows.get(location_id)
        if row is not None and row.last_level < level:
            row.last_level = level


class FakeUserRecommendRepository:
    def __init__(self) -> None:
        self.table = FakeTable(UserRecommend)

    async def get_by_user(self, user_id: int) -> UserRecommend | None:
        return next((row for row in self.table.all() if row.user_id == user_id), None)

    async def list_direct(self, prefix: str) -> list[UserRecommend]:
        return [row for row in self.table.all() if row.path == prefix]

    async def list_subtree(self, prefix: str) -> list[UserRecommend]:
        return [row for row in self.table.all() if row.path.startswith(prefix)]

    async def list_all(self) -> list[UserRecommend]:
        return self.table.all()

    async def create_for(self, user_id: int, sponsor: UserRecommend | None) -> UserRecommend:
        path = sponsor.subtree_prefix if sponsor else PATH_SEPARATOR
        return self.table.insert(user_id=user_id, path=path, created_at=datetime.now(UTC))


class FakeUserAreaRepository:
    def __init__(self) -> None:
        self.table = FakeTable(UserArea)

    async def get_by_user(self, user_id: int) -> UserArea | None:
        return next((row for row in self.table.all() if row.user_id == user_id), None)

    async def get_many(self, user_ids: list[int]) -> dict[int, UserArea]:
        return {row.user_id: row for row in self.table.all() if row.user_id in user_ids}

    async def add_amounts(self, user_id: int, amount: int = 0, self_amount: int = 0) -> UserArea:
        area = await self.get_by_user(user_id)
        if area is None:
            return self.table.insert(
                user_id=user_id, amount=amount, self_amount=self_amount, level=0
            )
        area.amount += amount
        area.self_amount += self_amount
        return area

    async def raise_level(self, user_id: int, level: int) -> bool:
        area = await self.get_by_user(user_id)
        if area is None or area.level >= level:
            return False
        area.level = level
        return True


class FakeUserInfoRepository:
    def __init__(self) -> None:
        self.table = FakeTable(UserInfo)

    async def get_by_user(self, user_id: int) -> UserInfo | None:
        return next((row for row in self.table.all() if row.user_id == user_id), None)

    async def list_all(self) -> list[UserInfo]:
        return self.table.all()

    async def list_unlocked(self) -> list[UserInfo]:
        return [row for row in self.table.all() if not row.lock_vip]

    async def list_by_vips(self, vips: tuple[int, ...]) -> list[UserInfo]:
        rows = [row for row in self.table.all() if row.vip in vips]
        return sorted(rows, key=lambda row: row.user_id)

    async def get_vips(self, user_ids: list[int]) -> dict[int, int]:
        return {row.user_id: row.vip for row in self.table.all() if row.user_id in user_ids}

    async def set_vip(self, user_id: int, vip: int, lock_vip: bool | None = None) -> None:
        info = await self.get_by_user(user_id)
        if info is None:
            raise LookupMissError(f"User info {user_id} not found")
        info.vip = vip
        if lock_vip is not None:
            info.lock_vip = lock_vip


class FakeUserBalanceRepository:
    def __init__(self) -> None:
        self.table = FakeTable(UserBalance)

    async def get_by_user(self, user_id: int) -> UserBalance | None:
        return next((row for row in self.table.all() if row.user_id == user_id), None)

    async def credit(self, user_id: int, usdt: int = 0, dhb: int = 0) -> UserBalance:
        balance = await self.get_by_user(user_id)
        if balance is None:
            balance = self.table.insert(user_id=user_id, balance_usdt=0, balance_dhb=0)
        if balance.balance_usdt + usdt < 0 or balance.balance_dhb + dhb < 0:
            raise LedgerInvariantError(f"Balance of user {user_id} would drop below zero")
        balance.balance_usdt += usdt
        balance.balance_dhb += dhb
        return balance


class FakeRewardRepository:
    def __init__(self) -> None:
        self.table = FakeTable(Reward)

    async def append_reward(
        self,
        user_id: int,
        amount: int,
        amount_b: int,
        reason: str,
        type: str,
        type_record_id: int,
        reason_location_id: int = 0,
        level: int = 0,
    ) -> Reward:
        return self.table.insert(
            user_id=user_id,
            amount=amount,
            amount_b=amount_b,
            reason=reason,
            type=type,
            type_record_id=type_record_id,
            reason_location_id=reason_location_id,
            level=level,
            created_at=datetime.now(UTC),
        )

    async def append_withdraw_commission(
        self,
        user_id: int,
        amount: int,
        amount_b: int,
        reason: str,
        trade_id: int,
        level: int = 0,
    ) -> Reward:
        return await self.append_reward(
            user_id=user_id,
            amount=amount,
            amount_b=amount_b,
            reason=reason,
            type=RewardType.TRADE.value,
            type_record_id=trade_id,
            level=level,
        )

    async def list_by_user(self, user_id: int) -> list[Reward]:
        return [row for row in self.table.all() if row.user_id == user_id]

    def by_reason(self, reason: str) -> list[Reward]:
        return [row for row in self.table.all() if row.reason == reason]


class FakeConfigRepository:
    def __init__(self) -> None:
        self.table = FakeTable(Config)
        self.fail_reads = False

    async def get_values(self, keys: list[str]) -> dict[str, str]:
        if self.fail_reads:
            raise ConnectionError("config store unavailable")
        return {row.key: row.value for row in self.table.all() if row.key in keys}

    async def set_value(self, key: str, value: str) -> str | None:
        row = next((row for row in self.table.all() if row.key == key), None)
        if row is None:
            self.table.insert(key=key, name=None, value=value)
            return None
        previous = row.value
        row.value = value
        return previous


class FakePriceChangeRepository:
    def __init__(self) -> None:
        self.table = FakeTable(PriceChange)

    async def get_by_id(self, id: int, for_update: bool = False) -> PriceChange | None:
        return self.table.rows.get(id)

    async def get_pending(self) -> PriceChange | None:
        return next(
            (row for row in self.table.all() if row.status == PriceChangeStatus.PENDING.value),
            None,
        )

    async def record(self, origin: int, price: int) -> PriceChange:
        return self.table.insert(
            origin=origin,
            price=price,
            status=PriceChangeStatus.PENDING.value,
            created_at=datetime.now(UTC),
            processed_at=None,
        )

    async def mark_processed(self, price_change_id: int) -> bool:
        row = self.table.rows.get(price_change_id)
        if row is None or row.status != PriceChangeStatus.PENDING.value:
            return False
        row.status = PriceChangeStatus.PROCESSED.value
        row.processed_at = datetime.now(UTC)
        return True


class FakeTradeRepository:
    def __init__(self) -> None:
        self.table = FakeTable(Trade)

    async def list_unsettled(self) -> list[Trade]:
        return [row for row in self.table.all() if row.status == TradeStatus.DEFAULT.value]

    async def sum_amount_settled_between(self, start: datetime, end: datetime) -> int:
        return sum(
            row.amount_csd
            for row in self.table.all()
            if row.status == TradeStatus.OK.value
            and row.settled_at is not None
            and start <= row.settled_at < end
        )

    async def claim(self, trade_id: int) -> bool:
        row = self.table.rows.get(trade_id)
        if row is None or row.status != TradeStatus.DEFAULT.value:
            return False
        row.status = TradeStatus.OK.value
        row.settled_at = datetime.now(UTC)
        return True


class FakeLedger:
    """Ledger stand-in with snapshot rollback and seeding helpers."""

    def __init__(self) -> None:
        self.locations = FakeLocationRepository()
        self.recommends = FakeUserRecommendRepository()
        self.areas = FakeUserAreaRepository()
        self.user_infos = FakeUserInfoRepository()
        self.balances = FakeUserBalanceRepository()
        self.rewards = FakeRewardRepository()
        self.configs = FakeConfigRepository()
        self.price_changes = FakePriceChangeRepository()
        self.trades = FakeTradeRepository()
        self.commits = 0
        self.rollbacks = 0

    def _tables(self) -> list[FakeTable]:
        return [
            self.locations.table,
            self.recommends.table,
            self.areas.table,
            self.user_infos.table,
            self.balances.table,
            self.rewards.table,
            self.configs.table,
            self.price_changes.table,
            self.trades.table,
        ]

    @asynccontextmanager
    async def transaction(self):
        states = [table.snapshot() for table in self._tables()]
        try:
            yield self
        except Exception:
            for table, state in zip(self._tables(), states):
                table.restore(state)
            self.rollbacks += 1
            raise
        self.commits += 1

    # Seeding helpers

    def set_config(self, **values: int | str) -> None:
        for key, value in values.items():
            row = next((row for row in self.configs.table.all() if row.key == key), None)
            if row is None:
                self.configs.table.insert(key=key, name=None, value=str(value))
            else:
                row.value = str(value)

    def add_user(
        self,
        user_id: int,
        sponsor_id: int | None = None,
        vip: int = 0,
        lock_vip: bool = False,
        history_recommend: int = 0,
        team_csd_balance: int = 0,
    ) -> UserRecommend:
        path = PATH_SEPARATOR
        if sponsor_id is not None:
            sponsor = next(
                row for row in self.recommends.table.all() if row.user_id == sponsor_id
            )
            path = sponsor.subtree_prefix
        self.user_infos.table.insert(
            user_id=user_id,
            vip=vip,
            lock_vip=lock_vip,
            history_recommend=history_recommend,
            team_csd_balance=team_csd_balance,
        )
        return self.recommends.table.insert(
            user_id=user_id, path=path, created_at=datetime.now(UTC)
        )

    def add_location(
        self,
        user_id: int,
        usdt: int,
        current_max: int | None = None,
        current: int = 0,
        current_max_new: int = 0,
        status: str = LocationStatus.RUNNING.value,
        top: int = 0,
        top_num: int = 0,
        totals: tuple[int, int, int] = (0, 0, 0),
        last_level: int = 0,
        created_at: datetime | None = None,
    ) -> Location:
        created_at = created_at or datetime(2020, 1, 1, tzinfo=UTC)
        return self.locations.table.insert(
            user_id=user_id,
            status=status,
            usdt=usdt,
            out_rate=300,
            current=current,
            current_max=current_max if current_max is not None else usdt * 3,
            current_max_new=current_max_new,
            current_amount_b=0,
            top=top,
            top_num=top_num,
            total=totals[0],
            total_two=totals[1],
            total_three=totals[2],
            last_level=last_level,
            stop_date=None,
            created_at=created_at,
            updated_at=created_at,
        )

    def set_balance(self, user_id: int, usdt: int = 0, dhb: int = 0) -> UserBalance:
        balance = next(
            (row for row in self.balances.table.all() if row.user_id == user_id), None
        )
        if balance is None:
            return self.balances.table.insert(user_id=user_id, balance_usdt=usdt, balance_dhb=dhb)
        balance.balance_usdt = usdt
        balance.balance_dhb = dhb
        return balance

    def add_trade(
        self,
        user_id: int,
        amount_csd: int,
        amount_hbs: int = 0,
        settled_at: datetime | None = None,
    ) -> Trade:
        status = TradeStatus.DEFAULT if settled_at is None else TradeStatus.OK
        return self.trades.table.insert(
            user_id=user_id,
            amount_csd=amount_csd,
            amount_hbs=amount_hbs,
            status=status.value,
            created_at=datetime.now(UTC),
            settled_at=settled_at,
        )

    def add_price_change(self, origin: int, price: int) -> PriceChange:
        return self.price_changes.table.insert(
            origin=origin,
            price=price,
            status=PriceChangeStatus.PENDING.value,
            created_at=datetime.now(UTC),
            processed_at=None,
        )
