# card_server.py
# -*- coding: utf-8 -*-
"""
Card-rendering endpoint for X/Twitter link previews, run as its own process:
    uvicorn card_server:app --port 3000
or  python card_server.py
Stateless: share data travels inside the URL as URL-safe base64 JSON.
"""

import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from config import CARD_SERVER_PORT
from ui.card_page import render_card_page

logger = logging.getLogger(__name__)

CARD_CACHE_CONTROL = "public, max-age=3600"


class CreateShareRequest(BaseModel):
    imageUrl: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    twitterText: Optional[str] = None


# ================================== encode_share_data(): Packs share data into an id ==================================
def encode_share_data(data: Dict[str, Any]) -> str:
    raw = json.dumps(data, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
# ================================== encode_share_data() end ==================================


# ================================== decode_share_data(): Unpacks an id, None when invalid ==================================
def decode_share_data(share_id: str) -> Optional[Dict[str, Any]]:
    try:
        padded = share_id + "=" * (-len(share_id) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        logger.debug(f"Invalid share id: {e}")
        return None
    if not isinstance(data, dict) or not data.get("imageUrl") or not data.get("twitterText"):
        return None
    return data
# ================================== decode_share_data() end ==================================


app = FastAPI(title="ShillBot card server")


@app.get("/twitter-card", response_class=HTMLResponse)
def twitter_card(
    request: Request,
    imageUrl: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    messageId: Optional[str] = None,
):
    if messageId and not imageUrl:
        logger.info(f"Twitter card requested for messageId {messageId} without imageUrl.")
    html = render_card_page(imageUrl, title, description, page_url=str(request.url))
    return HTMLResponse(html, headers={"Cache-Control": CARD_CACHE_CONTROL})


@app.get("/twitter/{share_id}", response_class=HTMLResponse)
def twitter_share(share_id: str, request: Request):
    share_data = decode_share_data(share_id)
    if share_data is None:
        raise HTTPException(status_code=404, detail="Share not found")
    html = render_card_page(
        share_data["imageUrl"],
        share_data.get("title"),
        share_data.get("description"),
        page_url=str(request.url),
        tweet_text=share_data["twitterText"],
    )
    return HTMLResponse(html, headers={"Cache-Control": CARD_CACHE_CONTROL})


@app.post("/api/create-share")
def create_share(payload: CreateShareRequest, request: Request):
    if not payload.imageUrl or not payload.twitterText:
        return JSONResponse(status_code=400, content={"error": "Missing required fields"})
    share_id = encode_share_data(payload.model_dump(exclude_none=True))
    share_url = str(request.url_for("twitter_share", share_id=share_id))
    return {
        "shareUrl": share_url,
        "shareId": share_id,
        "twitterUrl": f"https://twitter.com/intent/tweet?url={quote(share_url, safe='')}",
    }


@app.get("/health")
def health():
    return {"status": "ok"}


# ================================== main(): Runs the card server ==================================
def main():
    logger.info(f"Card server on port {CARD_SERVER_PORT}")
    uvicorn.run(app, host="0.0.0.0", port=CARD_SERVER_PORT)
# ================================== main() end ==================================


if __name__ == "__main__":
    main()

# card_server.py end
