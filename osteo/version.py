# -*- coding: utf-8 -*-
APP_NAME = "Osteoporose-Therapieassistent"
APP_VERSION = "1.4.0"
SCHEMA_VERSION = 1
