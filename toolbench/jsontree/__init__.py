"""Reserved for a JSON tree; it holds no modules in this release."""