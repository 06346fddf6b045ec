# Database maintenance: migrations runner and seed data
