"""Shared test fixtures: sample Dockerfiles."""

from __future__ import annotations

import textwrap

import pytest


@pytest.fixture
def bad_dockerfile() -> str:
    """Whole context copied before the install, no USER."""
    return textwrap.dedent("""\
        FROM node:18
        WORKDIR /app
        COPY . .
        RUN npm install
        EXPOSE 3000
        CMD ["node", "server.js"]
    """)


@pytest.fixture
def good_dockerfile() -> str:
    """Manifest copy, install, full copy, build, non-root user."""
    return textwrap.dedent("""\
        FROM node:18.19.0-alpine3.19
        WORKDIR /app
        COPY package*.json ./
        RUN npm ci --only=production
        COPY . .
        RUN npm run build
        USER node
        EXPOSE 3000
        HEALTHCHECK CMD wget -qO- http://localhost:3000/health || exit 1
        CMD ["node", "dist/index.js"]
    """)


@pytest.fixture
def multistage_dockerfile() -> str:
    """Builder stage plus slim runtime stage with a dedicated user."""
    return textwrap.dedent("""\
        # ---------- Builder ----------
        FROM node:18 AS builder
        WORKDIR /app

        COPY package.json package-lock.json ./
        RUN npm ci

        COPY . .
        RUN npm run build

        # ---------- Runtime ----------
        FROM node:18-slim
        WORKDIR /app

        RUN addgroup --system app && adduser --system --ingroup app app
        USER app

        COPY --from=builder /app/dist ./dist

        CMD ["node", "dist/index.js"]
    """)


@pytest.fixture
def noisy_dockerfile() -> str:
    """Triggers most built-in rules at once."""
    return textwrap.dedent("""\
        ARG NPM_TOKEN=abcdef123456
        FROM debian AS deps
        RUN apt-get update && apt-get install -y curl
        RUN rm -rf /var/lib/apt/lists/*
        FROM debian AS deps-copy
        RUN apt-get update && apt-get install -y curl
        RUN rm -rf /var/lib/apt/lists/*
        FROM node:latest
        ENV DB_PASSWORD=hunter2hunter2
        ADD app.js /app/
        COPY . .
        RUN npm install
        CMD ["node", "app.js"]
    """)
