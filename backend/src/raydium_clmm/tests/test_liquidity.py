from fractions import Fraction

import pytest
from solders.pubkey import Pubkey

from raydium_clmm.config import WSOL_MINT
from raydium_clmm.errors import AmountOutOfRange, InsufficientLiquidity, NonPositiveAmount, TokenNotInPool
from raydium_clmm.liquidity import U64_MAX, LiquidityComputer, apply_slippage
from raydium_clmm.tests.fakes import FixedRateOracle


@pytest.fixture
def oracle():
    # 1 SOL (1e9) -> 150 USDC (150e6)
    return FixedRateOracle(numerator=150, denominator=1000)


@pytest.fixture
def computer(rpc, oracle):
    return LiquidityComputer(rpc, oracle)


class TestApplySlippage:
    def test_exact_percent(self):
        assert apply_slippage(7_500_000, 0.01) == 7_425_000
        assert apply_slippage(7_500_000, "0.005") == 7_462_500
        assert apply_slippage(999, Fraction(1, 3)) == 666

    def test_rounds_down(self):
        assert apply_slippage(101, 0.01) == 99

    def test_zero_slippage_is_identity(self):
        assert apply_slippage(12345, 0) == 12345

    @pytest.mark.parametrize("slippage", [-0.01, 1, 1.5])
    def test_out_of_range(self, slippage):
        with pytest.raises(ValueError):
            apply_slippage(100, slippage)


class TestCompute:
    @pytest.mark.asyncio
    async def test_quote(self, computer, pool, usdc_mint, oracle, rpc):
        computation = await computer.compute(pool, WSOL_MINT, usdc_mint, 50_000_000, 0.01)

        assert computation.amount_in == 50_000_000
        assert computation.estimated_out == 7_500_000
        assert computation.min_amount_out == 7_425_000
        assert computation.input_mint.address == WSOL_MINT
        assert computation.output_mint.decimals == 6
        assert computation.auxiliary_accounts == tuple(oracle.auxiliary_accounts)
        assert oracle.fetch_calls == 1
        rpc.get_epoch_info.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reverse_direction(self, computer, pool, usdc_mint):
        computation = await computer.compute(pool, usdc_mint, WSOL_MINT, 1_000_000, 0)
        assert computation.input_mint.address == usdc_mint
        assert computation.output_mint.address == WSOL_MINT

    @pytest.mark.asyncio
    async def test_min_out_never_exceeds_slippage_bound(self, rpc, pool, usdc_mint):
        class GenerousOracle(FixedRateOracle):
            def compute_amount_out(self, *args, **kwargs):
                quote = super().compute_amount_out(*args, **kwargs)
                return quote.__class__(True, quote.estimated_out, quote.estimated_out, quote.auxiliary_accounts)

        computation = await LiquidityComputer(rpc, GenerousOracle()).compute(pool, WSOL_MINT, usdc_mint, 1000, 0.01)
        assert computation.min_amount_out == 990

    @pytest.mark.asyncio
    async def test_foreign_input_mint_rejected_before_oracle(self, computer, pool, usdc_mint, oracle, rpc):
        with pytest.raises(TokenNotInPool) as exc_info:
            await computer.compute(pool, Pubkey.new_unique(), usdc_mint, 10, 0.01)

        assert exc_info.value.user_message == "Input token is not part of the selected pool."
        assert oracle.fetch_calls == 0
        rpc.get_epoch_info.assert_not_called()

    @pytest.mark.asyncio
    async def test_output_must_be_other_pool_mint(self, computer, pool, usdc_mint):
        with pytest.raises(TokenNotInPool):
            await computer.compute(pool, WSOL_MINT, Pubkey.new_unique(), 10, 0.01)
        with pytest.raises(TokenNotInPool):
            await computer.compute(pool, WSOL_MINT, WSOL_MINT, 10, 0.01)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5])
    async def test_non_positive_amount(self, computer, pool, usdc_mint, oracle, amount):
        with pytest.raises(NonPositiveAmount):
            await computer.compute(pool, WSOL_MINT, usdc_mint, amount, 0.01)
        assert oracle.fetch_calls == 0

    @pytest.mark.asyncio
    async def test_unfillable_amount(self, rpc, pool, usdc_mint):
        computer = LiquidityComputer(rpc, FixedRateOracle(achievable=False))
        with pytest.raises(InsufficientLiquidity):
            await computer.compute(pool, WSOL_MINT, usdc_mint, 10**18, 0.01)

    @pytest.mark.asyncio
    async def test_bad_slippage_rejected_before_oracle(self, computer, pool, usdc_mint, oracle):
        with pytest.raises(ValueError):
            await computer.compute(pool, WSOL_MINT, usdc_mint, 10, 2)
        assert oracle.fetch_calls == 0

    @pytest.mark.asyncio
    async def test_amount_above_u64_rejected_before_oracle(self, computer, pool, usdc_mint, oracle, rpc):
        with pytest.raises(AmountOutOfRange):
            await computer.compute(pool, WSOL_MINT, usdc_mint, U64_MAX + 1, 0.01)
        assert oracle.fetch_calls == 0
        rpc.get_epoch_info.assert_not_called()

    @pytest.mark.asyncio
    async def test_u64_max_is_accepted(self, rpc, pool, usdc_mint):
        computation = await LiquidityComputer(rpc, FixedRateOracle()).compute(pool, WSOL_MINT, usdc_mint, U64_MAX, 0)
        assert computation.min_amount_out == U64_MAX

    @pytest.mark.asyncio
    async def test_quoted_output_above_u64_rejected(self, rpc, pool, usdc_mint):
        computer = LiquidityComputer(rpc, FixedRateOracle(numerator=1000, denominator=1))
        with pytest.raises(AmountOutOfRange):
            await computer.compute(pool, WSOL_MINT, usdc_mint, U64_MAX // 10, 0)
