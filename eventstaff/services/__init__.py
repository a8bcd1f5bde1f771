"""Services around the staffing core: contracts, qualifications, customer requests, administration."""
