"""
Model pricing endpoint.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from prompt_tester.api.deps import Pricing
from prompt_tester.services.pricing_service import calculate_cost

router = APIRouter()


@router.get("")
async def get_pricing(
    pricing: Pricing,
    model_id: Optional[str] = Query(None, alias="model"),
    prompt_tokens: Optional[int] = Query(None, alias="promptTokens", ge=0),
    completion_tokens: Optional[int] = Query(None, alias="completionTokens", ge=0),
):
    """
    Get per-token prices.

    - no parameters: the whole price table
    - ``model``: prices of one model
    - ``model`` + token counts: the cost of a request
    """
    if model_id and prompt_tokens is not None and completion_tokens is not None:
        model_pricing = await pricing.get(model_id)
        return {
            "model_id": model_id,
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "cost": calculate_cost(prompt_tokens, completion_tokens, model_pricing),
            "pricing": model_pricing,
        }

    if model_id:
        model_pricing = await pricing.get(model_id)
        if not model_pricing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No pricing for model {model_id}",
            )
        return {"model_id": model_id, **model_pricing.model_dump()}

    prices = await pricing.get_all()
    return {
        "count": len(prices),
        "models": {model: p.model_dump() for model, p in prices.items()},
    }
