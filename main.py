import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from dotenv import load_dotenv

# Load from script directory (not CWD)
script_dir = os.path.dirname(os.path.abspath(__file__))
load_dotenv(dotenv_path=os.path.join(script_dir, ".env"))

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, field_validator
from web3 import Web3
import uvicorn

from xchain_proofs import (
    BlockHeaderBuilder,
    BlockHeaderError,
    ChainRegistry,
    CrossChainProver,
    IntrospectionError,
    MultiChainProvider,
    ProofError,
    SlotNotFound,
    StorageProofsUnsupported,
    StorageSlotLocator,
    TokenAnalyzer,
    TransportError,
    UnsupportedChain,
    XChainError,
    default_registry,
)
from xchain_proofs import config

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("XChainProofs")


@asynccontextmanager
async def lifespan(app: FastAPI):
    registry = getattr(app.state, "registry", None) or default_registry()
    app.state.registry = registry
    if getattr(app.state, "provider", None) is None:
        app.state.provider = MultiChainProvider(registry)
    logger.info(f"[STARTUP] Serving {len(registry)} chains: {sorted(c.chain_id for c in registry)}")
    yield


app = FastAPI(title="XChain Proofs", lifespan=lifespan)


class ProofRequest(BaseModel):
    chain_id: int = Field(..., gt=0)
    token: str
    holder: str
    block_hash: str = Field(..., description="0x-prefixed 32-byte block hash used as trust anchor")

    @field_validator("token", "holder")
    def check_address(cls, v: str) -> str:
        if not Web3.is_address(v):
            raise ValueError(f"Invalid address: {v}")
        return Web3.to_checksum_address(v)

    @field_validator("block_hash")
    def check_block_hash(cls, v: str) -> str:
        if not (v.startswith("0x") and len(v) == 66):
            raise ValueError("block_hash must be 0x followed by 64 hex characters")
        try:
            bytes.fromhex(v[2:])
        except ValueError:
            raise ValueError("block_hash must be hex")
        return v.lower()


def _registry(request: Request) -> ChainRegistry:
    return request.app.state.registry


def _provider(request: Request) -> MultiChainProvider:
    return request.app.state.provider


def _raise_http(e: XChainError) -> None:
    if isinstance(e, UnsupportedChain):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (SlotNotFound, StorageProofsUnsupported, ProofError)):
        raise HTTPException(status_code=422, detail=f"Storage proofs unsupported: {e}")
    if isinstance(e, IntrospectionError):
        raise HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (TransportError, BlockHeaderError)):
        raise HTTPException(status_code=502, detail=str(e))
    logger.error(f"[API] Engine error: {e}")
    raise HTTPException(status_code=500, detail=str(e))


def _chain_summary(registry: ChainRegistry, chain_id: int) -> dict[str, Any]:
    chain = registry.lookup(chain_id)
    return {
        "chain_id": chain.chain_id,
        "name": chain.name,
        "short_name": chain.short_name,
        "native_currency": chain.native_currency.model_dump(),
        "hardfork": chain.hardfork,
        "custom_eips": list(chain.custom_eips),
        "supports_storage_proofs": not chain.cannot_make_storage_proofs,
        "explorer_url": chain.explorers[0].url if chain.explorers else None,
    }


@app.get("/chains")
async def list_chains(request: Request) -> list[dict[str, Any]]:
    registry = _registry(request)
    return [_chain_summary(registry, chain.chain_id) for chain in registry]


@app.get("/chains/{chain_id}")
async def get_chain(request: Request, chain_id: int) -> dict[str, Any]:
    try:
        return _chain_summary(_registry(request), chain_id)
    except XChainError as e:
        _raise_http(e)


@app.get("/token/{chain_id}/{address}")
async def get_token(request: Request, chain_id: int, address: str) -> dict[str, Any]:
    transport = None
    try:
        transport = _provider(request).open(chain_id)
        info = await TokenAnalyzer(transport).describe(address)
        return {
            "address": info.address,
            "chain_id": info.chain_id,
            "name": info.name,
            "symbol": info.symbol,
            "decimals": info.decimals,
            "total_supply": str(info.total_supply),
        }
    except XChainError as e:
        _raise_http(e)
    finally:
        if transport is not None:
            await transport.close()


@app.get("/slot/{chain_id}/{token}/{holder}")
async def get_slot(request: Request, chain_id: int, token: str, holder: str, block: str = "latest") -> dict[str, Any]:
    transport = None
    try:
        if _registry(request).lookup(chain_id).cannot_make_storage_proofs:
            raise StorageProofsUnsupported(chain_id)
        transport = _provider(request).open(chain_id)
        result = await StorageSlotLocator(transport).require(token, holder, block)
        return {
            "index": result.index,
            "balance": str(result.balance),
            "balance_decimal": result.balance_decimal,
        }
    except XChainError as e:
        _raise_http(e)
    finally:
        if transport is not None:
            await transport.close()


@app.get("/header/{chain_id}/{block_hash}")
async def get_header(request: Request, chain_id: int, block_hash: str) -> dict[str, str]:
    transport = None
    try:
        transport = _provider(request).open(chain_id)
        header = await BlockHeaderBuilder(transport, _registry(request)).header_rlp(block_hash)
        return {"block_hash": block_hash, "header": "0x" + header.hex()}
    except XChainError as e:
        _raise_http(e)
    finally:
        if transport is not None:
            await transport.close()


@app.post("/proof")
async def create_proof(request: Request, body: ProofRequest) -> dict[str, Any]:
    prover = CrossChainProver(_registry(request), _provider(request))
    try:
        bundle = await prover.prove_balance(body.chain_id, body.token, body.holder, body.block_hash)
    except XChainError as e:
        _raise_http(e)
    return bundle.to_dict()


if __name__ == "__main__":
    port: Optional[str] = os.getenv("PORT")
    uvicorn.run("main:app", host="0.0.0.0", port=int(port or 8000))
