#!/usr/bin/env python3
"""
Celery worker script for NestLink maintenance tasks
"""
from nestlink.core.celery_app import celery_app

if __name__ == '__main__':
    celery_app.start()
