# -*- coding: utf-8 -*-
"""Exercise progress, daily aggregation, streaks and the history ledger."""
