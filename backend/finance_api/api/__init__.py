# finance_api.api package - one router module per resource
