"""
Browser end-to-end suite for device onboarding and data acquisition.

Requires a studio account, a connected development board and Playwright
browsers:

    playwright install chromium
    EI_USERNAME=... EI_PASSWORD=... EI_PROJECTNAME=... EI_HMACKEY=... EI_TESTWIFI=0 \
        pytest tests/e2e -m e2e
"""
