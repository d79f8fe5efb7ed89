"""WhatJSX: återskapar läsbar JSX ur bundlade `createElement`-anropsträd."""

__version__ = "0.1.0"
